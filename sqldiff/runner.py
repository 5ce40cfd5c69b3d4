import json
import logging
from typing import Any, Dict, Optional
from urllib.parse import quote

import requests

from .dictionary import ResponseDictionary
from .sequence import TestInteraction, TestSequence

logger = logging.getLogger(__name__)


class HttpTestRunner:
    """Executes test sequences against a live API with a shared requests session"""

    def __init__(self, base_url: str, session: Optional[requests.Session] = None, timeout: float = 10.0,
                 dictionary: Optional[ResponseDictionary] = None, graph=None):
        self.base_url = base_url.rstrip('/')
        self.session = session or requests.Session()
        self.timeout = timeout
        self.dictionary = dictionary
        self.graph = graph

    def run(self, sequence: TestSequence) -> TestSequence:
        for interaction in sequence:
            self.execute(interaction)
        return sequence

    def execute(self, interaction: TestInteraction) -> TestInteraction:
        operation = interaction.fuzzed_operation
        values = operation.request_values()
        url = self.base_url + self.build_path(operation.endpoint, values['path'])
        body = _prune(values['body'])

        try:
            response = self.session.request(
                operation.method.value,
                url,
                params=_present(values['query']),
                headers={k: str(v) for k, v in _present(values['header']).items()},
                cookies={k: str(v) for k, v in _present(values['cookie']).items()},
                json=body,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.warning("Request %s %s failed: %s", operation.method.value, url, e)
            if self.dictionary is not None:
                self.dictionary.record_execution(operation, False, None)
            return interaction

        interaction.set_response(response.status_code, response.text)
        success = interaction.response_status_code.is_successful()
        logger.debug("%s %s -> %d", operation.method.value, url, response.status_code)

        if self.dictionary is not None:
            self.dictionary.record_execution(operation, success, _json_or_none(response.text) if success else None)
        if success and self.graph is not None:
            self.graph.set_operation_as_tested(operation)
        return interaction

    @staticmethod
    def build_path(endpoint: str, path_values: Dict[str, Any]) -> str:
        path = endpoint
        for name, value in path_values.items():
            path = path.replace('{' + name + '}', quote(str(value), safe=''))
        return path


def _present(values: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in values.items() if v is not None}


def _prune(value: Any) -> Any:
    """Drop unset object members from a JSON body"""
    if isinstance(value, dict):
        return {k: _prune(v) for k, v in value.items() if v is not None}
    if isinstance(value, list):
        return [_prune(v) for v in value]
    return value


def _json_or_none(text: str) -> Any:
    if not text:
        return None
    try:
        return json.loads(text)
    except ValueError:
        return None
