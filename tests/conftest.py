import sys
import types
from dataclasses import make_dataclass

import pytest

from sszgen.process import Config
from sszgen.resolver import load_package


class Generated:
    def __init__(self, code, models, namespace):
        self.code = code
        self.models = models
        self.namespace = namespace

    def __getattr__(self, name):
        try:
            return self.namespace[name]
        except KeyError:
            raise AttributeError(name) from None


@pytest.fixture
def write_schema(tmp_path):
    def write_schema(source, name='schema.ssz'):
        (tmp_path / name).write_text(source)
        return str(tmp_path)

    return write_schema


@pytest.fixture
def compile_schema(write_schema, monkeypatch):
    """Generate code for a schema and load it against dataclass models."""

    def compile_schema(source, type=None):
        directory = write_schema(source)
        package = load_package(directory)

        models = types.ModuleType(package.name)
        for t in package.types:
            setattr(models, t.name, make_dataclass(t.name, [f.name for f in t.fields]))
        monkeypatch.setitem(sys.modules, package.name, models)

        code = Config(dir=directory, type=type).process()
        namespace = {}
        exec(compile(code, 'generated.py', 'exec'), namespace)

        return Generated(code, models, namespace)

    return compile_schema
