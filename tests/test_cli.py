import json

import pytest

from sqldiff.cli import build_parser, main, resolve_config
from test_parser import PETSTORE


@pytest.fixture
def spec_file(tmp_path):
    path = tmp_path / 'petstore.json'
    path.write_text(json.dumps(PETSTORE))
    return str(path)


def test_graph_command_exports(tmp_path, spec_file, capsys):
    out_dir = tmp_path / 'out'
    assert main(['graph', spec_file, '-o', str(out_dir), '--session-name', 's1']) == 0

    assert (out_dir / 's1' / 'odg.dot').exists()
    assert (out_dir / 's1' / 'odg.json').exists()
    assert 'POST /pets' in capsys.readouterr().out


def test_sequence_command(spec_file, capsys):
    assert main(['--seed', '1', 'sequence', spec_file]) == 0
    lines = capsys.readouterr().out.splitlines()
    assert lines[0].strip() == '1. POST /pets'
    assert lines[-1].strip().endswith('DELETE /pets/{petId}')


def test_schema_command(spec_file, capsys):
    assert main(['schema', spec_file, '--dialect', 'sqlite']) == 0
    out = capsys.readouterr().out
    assert out.startswith('CREATE TABLE IF NOT EXISTS api_test_data_swagger_petstore (')
    assert 'INTEGER PRIMARY KEY AUTOINCREMENT' in out


def test_missing_contract_is_reported(capsys):
    assert main(['graph']) == 2
    assert 'No OpenAPI contract' in capsys.readouterr().err


def test_unreadable_contract_is_reported(tmp_path, capsys):
    assert main(['schema', str(tmp_path / 'missing.yaml')]) == 1
    assert 'Cannot read interface contract' in capsys.readouterr().err


def test_flags_override_config_file(tmp_path, spec_file):
    config_path = tmp_path / 'c.yaml'
    config_path.write_text(f"spec_path: {spec_file}\niterations: 9\nbase_url: http://a\n")
    args = build_parser().parse_args(['--config', str(config_path), 'run', '--iterations', '2'])

    config = resolve_config(args)

    assert config.iterations == 2
    assert config.base_url == 'http://a'
    assert config.drop_tables is True
