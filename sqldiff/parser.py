import json
import logging
import re
from typing import Any, Dict, List, Optional

import yaml

from .enums import HTTPMethod, ParameterLocation, ParameterType
from .exceptions import ContractError
from .operation import Operation
from .parameter import ArrayParameter, LeafParameter, ObjectParameter, Parameter

logger = logging.getLogger(__name__)

# Names too generic to identify a field across operations on their own
GENERIC_NAMES = {'id', 'name', 'uid', 'uuid', 'key', 'code', 'slug', 'title', 'type', 'status'}

SUPPORTED_METHODS = ['GET', 'POST', 'PUT', 'DELETE', 'PATCH']


def to_snake_case(name: str) -> str:
    s = re.sub(r'([a-z0-9])([A-Z])', r'\1_\2', name or '')
    s = re.sub(r'[^A-Za-z0-9]+', '_', s)
    return s.strip('_').lower()


def singularize(word: str) -> str:
    if word.endswith('ies') and len(word) > 3:
        return word[:-3] + 'y'
    if word.endswith('ses') or word.endswith('xes'):
        return word[:-2]
    if word.endswith('s') and not word.endswith('ss') and len(word) > 1:
        return word[:-1]
    return word


def normalize_parameter_name(name: str, context: Optional[str] = None) -> str:
    """
    Cross-operation identity hint for a parameter.
    Generic names (``id``, ``name``...) are qualified by their resource context,
    so ``/pets/{id}`` and ``Pet.id`` both normalize to ``pet_id``.
    """
    base = to_snake_case(name)
    if base in GENERIC_NAMES and context:
        prefix = singularize(to_snake_case(context))
        if prefix and prefix != base:
            return f"{prefix}_{base}"
    return base


def resource_of(path: str) -> Optional[str]:
    """Last non-placeholder segment of a path"""
    segments = [s for s in path.split('/') if s and not s.startswith('{')]
    return segments[-1] if segments else None


class OpenAPIParser:
    """Parse an OpenAPI 3 contract into the Operation/Parameter model"""

    def __init__(self, spec_path: Optional[str] = None, spec: Optional[Dict[str, Any]] = None):
        self.spec_path = spec_path
        self.spec: Dict[str, Any] = spec or {}
        self.operations: List[Operation] = []
        self.schemas: Dict[str, Any] = {}

    def load(self) -> Dict[str, Any]:
        if self.spec or not self.spec_path:
            return self.spec
        try:
            with open(self.spec_path, 'r', encoding='utf-8') as f:
                if self.spec_path.endswith('.yaml') or self.spec_path.endswith('.yml'):
                    self.spec = yaml.safe_load(f)
                else:
                    self.spec = json.load(f)
        except (OSError, yaml.YAMLError, json.JSONDecodeError) as e:
            raise ContractError(f"Cannot read interface contract {self.spec_path}: {e}") from e
        if not isinstance(self.spec, dict):
            raise ContractError(f"Interface contract {self.spec_path} is not a mapping")
        return self.spec

    @property
    def api_name(self) -> str:
        title = self.load().get('info', {}).get('title') or 'api'
        return to_snake_case(title) or 'api'

    def parse(self) -> List[Operation]:
        """Main parsing method"""
        self.load()
        self.schemas = self.spec.get('components', {}).get('schemas', {})
        self.operations = []

        paths = self.spec.get('paths', {})
        for path, path_item in paths.items():
            shared = path_item.get('parameters', [])
            for method, operation_spec in path_item.items():
                if method.upper() in SUPPORTED_METHODS:
                    operation = self._parse_operation(path, method.upper(), operation_spec, shared)
                    self.operations.append(operation)

        logger.debug("Parsed %d operations from contract", len(self.operations))
        return self.operations

    def _parse_operation(self, path: str, method: str, spec: Dict[str, Any],
                         shared: List[Dict[str, Any]]) -> Operation:
        """Parse a single operation"""
        by_location: Dict[ParameterLocation, List[Parameter]] = {
            ParameterLocation.HEADER: [],
            ParameterLocation.QUERY: [],
            ParameterLocation.PATH: [],
            ParameterLocation.COOKIE: [],
        }
        resource = resource_of(path)

        seen = set()
        for param_spec in list(spec.get('parameters', [])) + list(shared):
            param_spec = self._resolve(param_spec)
            key = (param_spec.get('name'), param_spec.get('in'))
            if key in seen:
                continue
            seen.add(key)
            try:
                location = ParameterLocation(param_spec.get('in', 'query'))
            except ValueError:
                continue
            param = self._parse_parameter(param_spec, location, self._context_for(path, param_spec))
            by_location[location].append(param)

        request_body = None
        if 'requestBody' in spec:
            schema = self._media_schema(self._resolve(spec['requestBody']))
            if schema:
                request_body = self._build_from_schema(
                    'body', schema, ParameterLocation.BODY, self._schema_context(schema) or resource)

        outputs: List[Parameter] = []
        for status_code, response_spec in spec.get('responses', {}).items():
            if not str(status_code).startswith('2'):
                continue
            schema = self._media_schema(self._resolve(response_spec))
            if schema:
                root = self._build_from_schema(
                    'response', schema, ParameterLocation.RESPONSE, self._schema_context(schema) or resource)
                outputs.extend(_output_leaves(root))

        return Operation(
            method=HTTPMethod[method],
            endpoint=path,
            operation_id=spec.get('operationId'),
            header_parameters=by_location[ParameterLocation.HEADER],
            query_parameters=by_location[ParameterLocation.QUERY],
            path_parameters=by_location[ParameterLocation.PATH],
            cookie_parameters=by_location[ParameterLocation.COOKIE],
            request_body=request_body,
            output_parameters=outputs,
            description=spec.get('description') or spec.get('summary'),
            tags=spec.get('tags', []),
        )

    def _context_for(self, path: str, param_spec: Dict[str, Any]) -> Optional[str]:
        # Path placeholders belong to the segment preceding them
        if param_spec.get('in') == 'path':
            segments = [s for s in path.split('/') if s]
            placeholder = '{' + str(param_spec.get('name')) + '}'
            if placeholder in segments:
                index = segments.index(placeholder)
                if index > 0 and not segments[index - 1].startswith('{'):
                    return segments[index - 1]
        return resource_of(path)

    def _parse_parameter(self, spec: Dict[str, Any], location: ParameterLocation,
                         context: Optional[str]) -> Parameter:
        """Parse a parameter specification"""
        schema = self._resolve(spec.get('schema', {}))
        param = self._build_from_schema(spec.get('name', ''), schema, location, context)
        param.required = spec.get('required', location == ParameterLocation.PATH)
        param.description = spec.get('description') or param.description
        param.style = spec.get('style') or self._default_style(location)
        if 'example' in spec:
            param.examples = [spec['example']]
        elif 'examples' in spec and isinstance(spec['examples'], dict):
            param.examples = [e.get('value') for e in spec['examples'].values() if isinstance(e, dict)]
        return param

    @staticmethod
    def _default_style(location: ParameterLocation) -> str:
        if location in (ParameterLocation.PATH, ParameterLocation.HEADER):
            return 'simple'
        return 'form'

    def _build_from_schema(self, name: str, schema: Dict[str, Any], location: ParameterLocation,
                           context: Optional[str], depth: int = 0) -> Parameter:
        schema = self._resolve(schema)
        type_value = schema.get('type')
        if type_value is None and 'properties' in schema:
            type_value = 'object'
        param_type = ParameterType.from_schema(type_value) if type_value else ParameterType.UNKNOWN

        common = dict(
            name=name,
            location=location,
            normalized_name=normalize_parameter_name(name, context),
            description=schema.get('description'),
            format=schema.get('format'),
            enum_values=list(schema.get('enum', [])),
            default=schema.get('default'),
            examples=[schema['example']] if 'example' in schema else [],
        )

        # Deep or recursive schemas are cut off and treated as opaque strings
        if depth > 8:
            return LeafParameter(type=ParameterType.STRING, **common)

        if param_type == ParameterType.OBJECT:
            child_context = self._schema_context(schema) or context
            properties = [
                self._build_from_schema(prop_name, prop_schema, location, child_context, depth + 1)
                for prop_name, prop_schema in schema.get('properties', {}).items()
            ]
            for prop in properties:
                prop.required = prop.name in schema.get('required', [])
            return ObjectParameter(properties=properties, **common)

        if param_type == ParameterType.ARRAY:
            items = self._resolve(schema.get('items', {}))
            element = self._build_from_schema(name, items, location, self._schema_context(items) or context,
                                              depth + 1)
            return ArrayParameter(reference_element=element, **common)

        return LeafParameter(type=param_type, **common)

    def _media_schema(self, spec: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        content = spec.get('content', {})
        for media_type in ('application/json', *content.keys()):
            media_spec = content.get(media_type)
            if media_spec and 'schema' in media_spec:
                return self._resolve(media_spec['schema'])
        return None

    def _schema_context(self, schema: Dict[str, Any]) -> Optional[str]:
        return schema.get('x-schema-name') or schema.get('title')

    def _resolve(self, spec: Any) -> Dict[str, Any]:
        """Follow local ``#/...`` references, remembering the schema name"""
        if not isinstance(spec, dict):
            return {}
        seen = set()
        while '$ref' in spec:
            ref = spec['$ref']
            if ref in seen or not ref.startswith('#/'):
                return {}
            seen.add(ref)
            target: Any = self.spec
            for part in ref[2:].split('/'):
                target = target.get(part, {}) if isinstance(target, dict) else {}
            spec = dict(target) if isinstance(target, dict) else {}
            if ref.startswith('#/components/schemas/'):
                spec.setdefault('x-schema-name', ref.rsplit('/', 1)[-1])
        return spec


def _output_leaves(param: Parameter) -> List[Parameter]:
    if isinstance(param, ObjectParameter):
        result = []
        for prop in param.properties:
            result.extend(_output_leaves(prop))
        return result
    if isinstance(param, ArrayParameter):
        if param.reference_element is None:
            return []
        return _output_leaves(param.reference_element)
    return [param]
