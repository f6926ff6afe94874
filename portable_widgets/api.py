# portable_widgets/api.py
"""
Interfaces between the widget manager and the host environment.

The host supplies serialized model state through a :class:`Context` and
duplex message streams through :class:`Comm` objects. Both are consumed
as-is; nothing here opens channels.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import (
    Any,
    AsyncIterator,
    Dict,
    List,
    Mapping,
    Optional,
    Protocol,
    Sequence,
    runtime_checkable,
)

import yaml

WIDGET_VIEW_MIMETYPE = "application/vnd.jupyter.widget-view+json"


@dataclass
class CommMessage:
    """One message received on a comm channel."""
    data: Any
    buffers: Optional[List[bytes]] = None


@runtime_checkable
class Comm(Protocol):
    """A duplex, ordered message stream opened by the host."""

    @property
    def messages(self) -> AsyncIterator[CommMessage]:
        ...

    async def send(self, data: Any, buffers: Optional[Sequence[memoryview]] = None) -> None:
        ...

    def close(self) -> None:
        ...


@dataclass
class ModelRecord:
    """The host's description of a single widget model."""
    model_name: str
    model_module: str
    state: Dict[str, Any] = field(default_factory=dict)
    model_module_version: Optional[str] = None
    comm: Optional[Comm] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ModelRecord":
        """Build a record from host JSON/YAML (snake_case or camelCase keys)."""
        def pick(*names, default=None):
            for name in names:
                if name in data:
                    return data[name]
            return default

        name = pick("model_name", "modelName")
        module = pick("model_module", "modelModule")
        if not name or not module:
            raise ValueError(f"Model record needs model_name and model_module: {dict(data)!r}")
        return cls(
            model_name=name,
            model_module=module,
            model_module_version=pick("model_module_version", "modelModuleVersion"),
            state=dict(pick("state", default={}) or {}),
            comm=pick("comm"),
        )


class Context(Protocol):
    """Host services available to the widget manager."""

    async def get_model_state(self, model_id: str) -> Mapping[str, ModelRecord]:
        ...


class StaticContext:
    """A Context backed by a fixed mapping of model id -> ModelRecord."""

    def __init__(self, records: Optional[Mapping[str, ModelRecord]] = None):
        self.records: Dict[str, ModelRecord] = dict(records or {})
        self.requests: List[str] = []

    async def get_model_state(self, model_id: str) -> Mapping[str, ModelRecord]:
        self.requests.append(model_id)
        return self.records

    @classmethod
    def from_yaml(cls, path) -> "StaticContext":
        """
        Load records from a YAML document of the form::

            models:
              w1:
                model_name: IntSliderModel
                model_module: "@jupyter-widgets/controls"
                state: {value: 5}
        """
        with Path(path).open("r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh) or {}
        models = data.get("models", data) if isinstance(data, dict) else None
        if not isinstance(models, dict):
            raise ValueError(f"{path}: expected a 'models' mapping")
        return cls({model_id: ModelRecord.from_dict(record) for model_id, record in models.items()})
