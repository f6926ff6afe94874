# portable_widgets/loader.py
import asyncio
import importlib
import inspect
import logging
from typing import Any, Callable, Dict, Optional, Sequence

from .config import Config, get_config

logger = logging.getLogger(__name__)


def python_module_name(module_name: str) -> str:
    """Map a widget module name such as ``@acme/fancy-widgets`` to ``acme.fancy_widgets``."""
    return module_name.lstrip("@").replace("/", ".").replace("-", "_")


class Loader:
    """
    Resolves widget module names to namespaces.

    Modules registered with :meth:`define` are served from memory: the
    factory runs once, receiving its loaded dependencies. Anything else is
    imported as a Python module, using the ``module_paths`` config mapping
    when it names the module.
    """

    def __init__(self, config: Optional[Config] = None):
        self.config = config or get_config()
        self._definitions: Dict[str, tuple] = {}
        self._loaded: Dict[str, "asyncio.Future"] = {}

    def define(self, module_name: str, dependencies: Sequence[str], factory: Callable[..., Any]) -> None:
        if module_name in self._definitions:
            logger.debug("Redefining widget module %s", module_name)
        self._definitions[module_name] = (list(dependencies), factory)
        self._loaded.pop(module_name, None)

    def is_defined(self, module_name: str) -> bool:
        return module_name in self._definitions

    async def load(self, module_name: str, module_version: str = "") -> Any:
        future = self._loaded.get(module_name)
        if future is None:
            future = asyncio.ensure_future(self._load(module_name, module_version))
            self._loaded[module_name] = future
        try:
            return await future
        except Exception:
            # Allow a later attempt, e.g. after the module was installed.
            if self._loaded.get(module_name) is future:
                del self._loaded[module_name]
            raise

    async def _load(self, module_name: str, module_version: str) -> Any:
        if module_name in self._definitions:
            dependencies, factory = self._definitions[module_name]
            resolved = [await self.load(dep) for dep in dependencies]
            namespace = factory(*resolved)
            if inspect.isawaitable(namespace):
                namespace = await namespace
            return namespace

        import_path = (self.config.get("module_paths") or {}).get(module_name) or python_module_name(module_name)
        logger.debug("Importing widget module %s@%s from %s", module_name, module_version or "*", import_path)
        return importlib.import_module(import_path)
