from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Sequence

from driverwrap.core.protocols.session_protocol import ElementProtocol, SessionProtocol


class Target(Enum):
    # call the primitive of the same name on the resolved element
    ELEMENT = "element"
    # look up children of the resolved element with the locator passed as first argument
    CHILDREN = "children"


class Result(Enum):
    NONE = "none"
    VALUE = "value"
    BOOL = "bool"
    ELEMENTS = "elements"


@dataclass(frozen=True)
class Action:
    """How one element action is dispatched.

    `arity` is the exact number of positional arguments, or None for
    variadic actions such as `send_keys`.
    """
    name: str
    arity: int | None = 0
    target: Target = Target.ELEMENT
    result: Result = Result.VALUE

    def check_args(self, args: Sequence[Any]) -> None:
        if self.arity is not None and len(args) != self.arity:
            raise TypeError(f"{self.name}() takes {self.arity} positional arguments but {len(args)} were given")

    async def apply(self, session: SessionProtocol, node: ElementProtocol, args: Sequence[Any]) -> Any:
        if self.target is Target.CHILDREN:
            value: Any = await session.find_elements(args[0], node)
        else:
            value = await getattr(node, self.name)(*args)
        return self.shape(value)

    def shape(self, value: Any) -> Any:
        if self.result is Result.NONE:
            return None
        if self.result is Result.BOOL:
            return bool(value)
        if self.result is Result.ELEMENTS:
            return list(value)
        return value


def _table(*actions: Action) -> dict[str, Action]:
    return {action.name: action for action in actions}


ELEMENT_ACTIONS: dict[str, Action] = _table(
    Action("click", result=Result.NONE),
    Action("send_keys", arity=None, result=Result.NONE),
    Action("get_tag_name"),
    Action("get_css_value", arity=1),
    Action("get_attribute", arity=1),
    Action("get_text"),
    Action("get_size"),
    Action("get_location"),
    Action("is_enabled", result=Result.BOOL),
    Action("is_selected", result=Result.BOOL),
    Action("submit", result=Result.NONE),
    Action("clear", result=Result.NONE),
    Action("is_displayed", result=Result.BOOL),
    Action("get_outer_html"),
    Action("get_inner_html"),
    Action("find_elements", arity=1, target=Target.CHILDREN, result=Result.ELEMENTS),
    Action("is_element_present", arity=1, target=Target.CHILDREN, result=Result.BOOL),
)
