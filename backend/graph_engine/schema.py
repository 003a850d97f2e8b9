"""
Node, edge and node-data definitions for flow graphs.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Tuple, Type, Union

from .errors import FormatError


class NodeType(str, Enum):
    CODE = "code"
    ARITHMETIC = "arithmetic"
    HTTP = "http"
    DEFAULT = "default"

    @classmethod
    def from_name(cls, name: str) -> "NodeType":
        """Map a document type string to a kind; unknown names are generic."""
        try:
            return cls(name)
        except ValueError:
            return cls.DEFAULT


ARITHMETIC_OPERATORS = ('+', '-', '*', '/')
HTTP_METHODS = ('GET', 'POST')

DEFAULT_NODE_LABELS = {
    NodeType.CODE: 'Code',
    NodeType.ARITHMETIC: 'Arithmetic',
    NodeType.HTTP: 'HTTP Request',
    NodeType.DEFAULT: 'Start Node',
}


def _field(raw: Dict, key: str, types: Tuple[type, ...], node_id: str,
           required: bool = True, nullable: bool = False) -> Any:
    if key not in raw:
        if required:
            raise FormatError(f"Node {node_id}: data is missing '{key}'")
        return None
    value = raw[key]
    if value is None and nullable:
        return None
    # bool is an int subclass but never a valid operand
    if isinstance(value, bool) and bool not in types:
        raise FormatError(f"Node {node_id}: '{key}' has invalid type bool")
    if not isinstance(value, types):
        raise FormatError(
            f"Node {node_id}: '{key}' has invalid type {type(value).__name__}"
        )
    return value


_NUMBER = (int, float)


@dataclass
class CodeData:
    source: str
    last_error: Optional[str] = None
    output: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'source': self.source,
            'lastError': self.last_error,
            'output': self.output,
        }

    @classmethod
    def from_dict(cls, raw: Dict[str, Any], node_id: str = "?") -> "CodeData":
        return cls(
            source=_field(raw, 'source', (str,), node_id),
            last_error=_field(raw, 'lastError', (str,), node_id, required=False, nullable=True),
            output=_field(raw, 'output', (str,), node_id, required=False, nullable=True),
        )


@dataclass
class ArithmeticData:
    operand_a: Union[int, float]
    operand_b: Union[int, float]
    operator: str
    result: Optional[Union[int, float]] = None
    last_error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'operandA': self.operand_a,
            'operandB': self.operand_b,
            'operator': self.operator,
            'result': self.result,
            'lastError': self.last_error,
        }

    @classmethod
    def from_dict(cls, raw: Dict[str, Any], node_id: str = "?") -> "ArithmeticData":
        return cls(
            operand_a=_field(raw, 'operandA', _NUMBER, node_id),
            operand_b=_field(raw, 'operandB', _NUMBER, node_id),
            operator=_field(raw, 'operator', (str,), node_id),
            result=_field(raw, 'result', _NUMBER, node_id, required=False, nullable=True),
            last_error=_field(raw, 'lastError', (str,), node_id, required=False, nullable=True),
        )


@dataclass
class HttpData:
    url: str
    method: str = 'GET'
    response: Optional[str] = None
    last_error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'url': self.url,
            'method': self.method,
            'response': self.response,
            'lastError': self.last_error,
        }

    @classmethod
    def from_dict(cls, raw: Dict[str, Any], node_id: str = "?") -> "HttpData":
        return cls(
            url=_field(raw, 'url', (str,), node_id),
            method=_field(raw, 'method', (str,), node_id),
            response=_field(raw, 'response', (str,), node_id, required=False, nullable=True),
            last_error=_field(raw, 'lastError', (str,), node_id, required=False, nullable=True),
        )


@dataclass
class GenericData:
    """Payload of nodes without executable semantics, kept verbatim."""
    payload: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return dict(self.payload)

    @classmethod
    def from_dict(cls, raw: Dict[str, Any], node_id: str = "?") -> "GenericData":
        return cls(payload=dict(raw))


NodeData = Union[CodeData, ArithmeticData, HttpData, GenericData]

NODE_DATA_TYPES: Dict[NodeType, Type] = {
    NodeType.CODE: CodeData,
    NodeType.ARITHMETIC: ArithmeticData,
    NodeType.HTTP: HttpData,
    NodeType.DEFAULT: GenericData,
}


def parse_node_data(kind: NodeType, raw: Any, node_id: str) -> NodeData:
    if not isinstance(raw, dict):
        raise FormatError(f"Node {node_id}: 'data' must be an object")
    return NODE_DATA_TYPES[kind].from_dict(raw, node_id)


def default_node_data(kind: NodeType) -> NodeData:
    """Fresh data for a node created from the canvas toolbar."""
    if kind is NodeType.CODE:
        return CodeData(source="# write Python here\n")
    if kind is NodeType.ARITHMETIC:
        return ArithmeticData(operand_a=0, operand_b=0, operator='+')
    if kind is NodeType.HTTP:
        return HttpData(url='', method='GET')
    return GenericData(payload={'label': DEFAULT_NODE_LABELS[kind]})


@dataclass
class Node:
    id: str
    type: str
    data: NodeData
    position: Any = None

    @property
    def kind(self) -> NodeType:
        return NodeType.from_name(self.type)

    def to_dict(self) -> Dict[str, Any]:
        result = {'id': self.id, 'type': self.type, 'data': self.data.to_dict()}
        if self.position is not None:
            result['position'] = self.position
        return result


@dataclass(frozen=True)
class Edge:
    source: str
    target: str
    id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        result = {'source': self.source, 'target': self.target}
        if self.id is not None:
            result['id'] = self.id
        return result
