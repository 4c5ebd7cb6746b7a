"""Tests for the static build model."""

import pytest

from artifacts.reactor import ReactorKey
from build_model import StaticBuildModel, dependency_from_mapping
from common.exceptions import ConfigurationError

REACTOR = [
    {
        "group_id": "com.x",
        "artifact_id": "app",
        "version": "1.0",
        "packaging": "war",
        "dependencies": [
            {"group_id": "com.y", "artifact_id": "lib", "version": "2.0"},
            {
                "group_id": "com.y",
                "artifact_id": "testlib",
                "version": "2.0",
                "type": "test-jar",
                "scope": "test",
                "exclusions": [{"group_id": "junit", "artifact_id": "*"}],
            },
            {"group_id": "com.y", "artifact_id": "managed"},
        ],
        "dependency_management": [
            {"group_id": "com.y", "artifact_id": "managed", "version": "5.0", "scope": "runtime"},
        ],
        "plugins": [
            {
                "group_id": "org.p",
                "artifact_id": "plug",
                "version": "1.0",
                "dependencies": [{"group_id": "org.p", "artifact_id": "addon", "version": "1.1"}],
            },
        ],
    },
]


def test_modules_from_data():
    (module,) = StaticBuildModel.from_data(REACTOR).modules()

    assert str(module) == "com.x:app"
    assert str(module.coordinate) == "com.x:app:war:1.0"
    lib, testlib, managed = module.dependencies
    assert lib.scope is None
    assert testlib.coordinate.classifier == "tests"
    assert testlib.scope == "test"
    assert testlib.exclusions[0].group == "junit"
    assert managed.coordinate.version == ""
    assert module.managed_dependencies[0].coordinate.version == "5.0"

    (plugin,) = module.plugins
    assert plugin.coordinate.type == "maven-plugin"
    assert plugin.coordinate.extension == "jar"
    assert str(plugin.dependencies[0].coordinate) == "org.p:addon:jar:1.1"


def test_workspace_holds_module_descriptors():
    model = StaticBuildModel.from_data(REACTOR)
    workspace = model.workspace()
    descriptor = workspace[ReactorKey("com.x", "app", "1.0")]
    assert descriptor.coordinate.extension == "pom"
    assert len(descriptor.dependencies) == 3
    assert len(descriptor.managed_dependencies) == 1


def test_empty_reactor():
    assert StaticBuildModel.from_data(None).modules() == []
    assert StaticBuildModel.from_data([]).workspace() == {}


@pytest.mark.parametrize(
    "data,message",
    [
        ({"reactor": "nope"}, "reactor must be a list"),
        ([{"group_id": "com.x", "version": "1"}], r"reactor\[0\]: missing required field 'artifact_id'"),
        ([{"group_id": "com.x", "artifact_id": "a", "version": "1", "dependencies": ["g:a:1"]}],
         r"reactor\[0\].dependencies\[0\]: expected a mapping"),
        ([{"group_id": "com.x", "artifact_id": "a", "version": "1",
           "plugins": [{"group_id": "p", "artifact_id": "x"}]}],
         r"reactor\[0\].plugins\[0\]: missing required field 'version'"),
    ],
)
def test_invalid_reactor(data, message):
    with pytest.raises(ConfigurationError, match=message):
        StaticBuildModel.from_data(data)


def test_dependency_version_can_be_required():
    with pytest.raises(ConfigurationError, match="missing required field 'version'"):
        dependency_from_mapping({"group_id": "g", "artifact_id": "a"}, "dep", require_version=True)
