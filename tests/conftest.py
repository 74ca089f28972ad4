"""Pytest fixtures for annoctx tests."""

import logging
import os

import pytest

from annoctx.core.instance import InstancedConstructor
from annoctx.core.manager import ContextManager, reset_manager
from annoctx.core.meta import ModelMeta
from annoctx.core.registry import ModelRegistry
from annoctx.core.types import ModelKind
from annoctx.foundation.config import AnnoConfig, reset_config
from annoctx.model import child, model, put_resolve, saga, state


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch, tmp_path):
    """Keep user config files and ANNO_* variables out of every test."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("HOME", str(tmp_path))
    for key in [k for k in os.environ if k.startswith("ANNO_")]:
        monkeypatch.delenv(key)
    reset_config()
    yield
    reset_config()


@pytest.fixture
def config() -> AnnoConfig:
    """Deterministic keys make prototype paths predictable."""
    return AnnoConfig(key_strategy="sequence")


@pytest.fixture
def manager(config: AnnoConfig):
    """A fresh manager, also installed as the default one."""
    mgr = ContextManager(ModelRegistry(), config=config)
    previous = reset_manager(mgr)
    yield mgr
    reset_manager(previous)


@pytest.fixture
def make_meta():
    """Build (instanced constructor, meta) for a bare class without the decorator."""

    def factory(cls: type, name: str, kind: ModelKind = ModelKind.SINGLETON):
        instanced = InstancedConstructor(cls, name, kind)
        return instanced, ModelMeta(kind, name, cls, instanced)

    return factory


@pytest.fixture
def counter_model(manager: ContextManager) -> type:
    """Singleton model with a step argument and a saga."""

    @model(manager=manager)
    class Counter:
        count = state(0)
        label = state("")

        def __init__(self, step: int = 1):
            self.step = step

        @saga
        async def bump(self, times: int = 1) -> int:
            for _ in range(times):
                await put_resolve(self, "count", self.count + self.step)
            return self.count

    return Counter


@pytest.fixture
def todo_model(manager: ContextManager) -> type:
    """Prototype model with an accumulating reducer."""

    @model(ModelKind.PROTOTYPE, manager=manager)
    class Todo:
        title = state("")
        done = state(False)
        tags = state((), reducer=lambda prev, tag: (*prev, tag))

        @saga
        async def finish(self) -> bool:
            return await put_resolve(self, "done", True)

    return Todo


@pytest.fixture
def family_models(manager: ContextManager) -> dict[str, type]:
    """A singleton parent holding one singleton and one prototype child."""

    @model(ModelKind.PROTOTYPE, manager=manager)
    class PrototypeChild:
        proto_num = state(0)

    @model(manager=manager)
    class StaticChild:
        stat_num = state(0)

        def __init__(self, arg_num: int):
            self.arg_num = arg_num

    @model(manager=manager)
    class Papa:
        papa_num = state(0)
        static_child = child(StaticChild, 1)
        dynamic_child = child(PrototypeChild)

    return {"Papa": Papa, "StaticChild": StaticChild, "PrototypeChild": PrototypeChild}


@pytest.fixture
def restore_root_logger():
    """Drop the handlers configure_logging() installs on the root logger."""
    root = logging.getLogger()
    level = root.level
    yield
    for handler in list(root.handlers):
        if type(handler) in (logging.StreamHandler, logging.FileHandler):
            root.removeHandler(handler)
            handler.close()
    root.setLevel(level)
