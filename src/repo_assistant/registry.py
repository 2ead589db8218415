# registry.py
# Fixed catalog of named actions. Pure data + dispatch; no state beyond the
# catalog itself, which is frozen once startup wiring is done.

import builtins
from dataclasses import dataclass
from typing import Any, Callable

from loguru import logger
from pydantic import BaseModel

from repo_assistant.errors import DuplicateActionError, UnknownActionError


@dataclass(frozen=True)
class ActionDefinition:
    """
    A named capability exposed to the decision engine.

    `schema` is the typed input contract; the handler receives an instance
    of it, never the raw argument bundle.
    """

    name: str
    description: str
    schema: type[BaseModel]
    handler: Callable[[Any], Any]

    def parameters(self) -> dict[str, Any]:
        """JSON schema advertised to the model, using wire (alias) names."""
        return self.schema.model_json_schema(by_alias=True)


class ActionRegistry:
    def __init__(self) -> None:
        self._actions: dict[str, ActionDefinition] = {}
        self._frozen = False

    def register(self, definition: ActionDefinition) -> None:
        if self._frozen:
            raise RuntimeError("Action registry is frozen; register actions during startup.")
        if definition.name in self._actions:
            raise DuplicateActionError(f"Action '{definition.name}' is already registered.")
        self._actions[definition.name] = definition
        logger.debug("Registered action {}", definition.name)

    def resolve(self, name: str) -> ActionDefinition:
        try:
            return self._actions[name]
        except KeyError:
            raise UnknownActionError(name) from None

    def list(self) -> builtins.list[ActionDefinition]:
        # dicts keep insertion order, which is declaration order here
        return list(self._actions.values())

    def names(self) -> builtins.list[str]:
        return list(self._actions)

    def freeze(self) -> "ActionRegistry":
        self._frozen = True
        return self

    def __contains__(self, name: object) -> bool:
        return name in self._actions

    def __len__(self) -> int:
        return len(self._actions)
