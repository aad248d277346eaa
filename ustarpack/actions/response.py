import json
from typing import Any, Final, Mapping, TYPE_CHECKING

if TYPE_CHECKING:
    from typing_extensions import Self

KEY_ACTION: Final = "Action"
KEY_ERROR: Final = "Error"
KEY_MESSAGE: Final = "Message"


class MalformedResponseError(ValueError):
    def __init__(self, reason: str) -> None:
        super().__init__()
        self.reason = reason

    def __str__(self) -> str:
        return f"malformed action response: {self.reason}"


class MissingAttributeError(KeyError):
    def __init__(self, key: str) -> None:
        super().__init__(key)
        self.key = key

    def __str__(self) -> str:
        return f"attribute {self.key} not present in action response"


class ActionMismatchError(ValueError):
    def __init__(self, expected: str, actual: str | None) -> None:
        super().__init__()
        self.expected = expected
        self.actual = actual

    def __str__(self) -> str:
        return f"expected a response to action {self.expected}, got {self.actual}"


class ActionResponse:
    """A completed response of the remote action service.

    Responses are flat JSON objects naming the action they answer, e.g.
    ``{"Action": "INIT", "Job": "V-504.1551", "Funds": 115.01}``. Failed
    requests carry an ``Error`` code and a ``Message`` instead.
    """

    def __init__(self, data: Mapping[str, Any]) -> None:
        self._data = data

    @classmethod
    def from_json(cls, text: str | bytes) -> "Self":
        try:
            data = json.loads(text)
        except ValueError as e:
            raise MalformedResponseError(str(e)) from e

        if not isinstance(data, dict):
            raise MalformedResponseError(f"expected an object, got {type(data).__name__}")
        return cls(data)

    @property
    def action(self) -> str | None:
        v = self._data.get(KEY_ACTION)
        return v if isinstance(v, str) else None

    def ensure_action(self, expected: str) -> None:
        if self.action != expected:
            raise ActionMismatchError(expected, self.action)

    @property
    def has_error(self) -> bool:
        return KEY_ERROR in self._data

    @property
    def error_code(self) -> int | None:
        if not self.has_error:
            return None
        return self.get_int(KEY_ERROR)

    @property
    def error_message(self) -> str | None:
        if not self.has_error:
            return None
        return str(self._data.get(KEY_MESSAGE, ""))

    def get_attribute(self, key: str) -> Any:
        try:
            return self._data[key]
        except KeyError:
            raise MissingAttributeError(key) from None

    def get_str(self, key: str) -> str:
        v = self.get_attribute(key)
        if not isinstance(v, str):
            raise MalformedResponseError(f"attribute {key} is not a string: {v!r}")
        return v

    def get_int(self, key: str) -> int:
        v = self.get_attribute(key)
        if isinstance(v, bool) or not isinstance(v, int):
            raise MalformedResponseError(f"attribute {key} is not an integer: {v!r}")
        return v

    def get_float(self, key: str) -> float:
        v = self.get_attribute(key)
        if isinstance(v, bool) or not isinstance(v, (int, float)):
            raise MalformedResponseError(f"attribute {key} is not a number: {v!r}")
        return float(v)

    def get_list(self, key: str) -> list[Any]:
        v = self.get_attribute(key)
        if not isinstance(v, list):
            raise MalformedResponseError(f"attribute {key} is not an array: {v!r}")
        return v
