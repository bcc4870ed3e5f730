"""
クエリパラメータの取り込み

URLのクエリ文字列から既知のパラメータだけをスキーマ検証して取り込む。
"""

from copy import deepcopy
from dataclasses import dataclass
from typing import Any, Callable, Dict, Mapping

from jsonschema import Draft7Validator, exceptions as jsonschema_exceptions

from auth_broker.errors import QueryParameterError

BOOLEAN_PARAMETER: Dict[str, Any] = {"type": "string", "enum": ["true", "false"]}


def _to_bool(value: str) -> bool:
    return value == "true"


@dataclass(frozen=True)
class QueryParameter:
    """取り込むパラメータの定義

    Attributes:
        attribute: 取り込み先の属性名
        schema: 値のJSON Schema
        coerce: 文字列値の変換関数
    """
    attribute: str
    schema: Dict[str, Any]
    coerce: Callable[[str], Any] = str


def boolean(attribute: str) -> QueryParameter:
    """"true" / "false" を受け付けるパラメータ"""
    return QueryParameter(attribute=attribute, schema=deepcopy(BOOLEAN_PARAMETER), coerce=_to_bool)


class SearchParamImporter:
    """パラメータ定義からJSON Schemaを組み立てて検証する"""

    def __init__(self, parameters: Mapping[str, QueryParameter]):
        self._parameters = dict(parameters)
        self._validator = Draft7Validator(
            {
                "type": "object",
                "properties": {
                    name: param.schema for name, param in self._parameters.items()
                },
                "additionalProperties": True,
            }
        )

    @staticmethod
    def _param_name(error: jsonschema_exceptions.ValidationError) -> str:
        path = list(error.absolute_path)
        return str(path[0]) if path else "$"

    def import_params(self, search_params: Mapping[str, str]) -> Dict[str, Any]:
        """既知のパラメータを検証し、属性名をキーとする辞書を返す

        未知のパラメータは無視する。

        Raises:
            QueryParameterError: 値がスキーマに合わない場合
        """
        recognized = {
            name: value for name, value in search_params.items() if name in self._parameters
        }
        errors = sorted(
            self._validator.iter_errors(recognized),
            key=lambda err: list(err.absolute_path),
        )
        if errors:
            first = errors[0]
            raise QueryParameterError(self._param_name(first), first.message)

        return {
            self._parameters[name].attribute: self._parameters[name].coerce(value)
            for name, value in recognized.items()
        }
