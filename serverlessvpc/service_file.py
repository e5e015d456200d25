"""
Service File Loader

Reads a serverless.yml (or JSON) service definition, resolves its variables,
and writes the patched definition back out.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import IO, Any, Dict, Mapping, Optional, Union

import yaml

from serverlessvpc.errors import ConfigurationError
from serverlessvpc.variable_resolver import resolve_all

logger = logging.getLogger(__name__)

DEFAULT_SERVICE_FILES = ["serverless.yml", "serverless.yaml", "serverless.json"]

CFN_TAGS = [
    "!Ref",
    "!Sub",
    "!GetAtt",
    "!GetAZs",
    "!ImportValue",
    "!If",
    "!Join",
    "!Select",
    "!Split",
    "!FindInMap",
    "!Base64",
    "!Cidr",
    "!Equals",
    "!And",
    "!Or",
    "!Not",
    "!Condition",
]


@dataclass
class CfnTag:
    """A CloudFormation short-form intrinsic, e.g. ``!Ref OrdersQueue``, kept as written."""

    tag: str
    value: Any


class CfnLoader(yaml.SafeLoader):
    """YAML loader that keeps CloudFormation intrinsic functions."""

    pass


class CfnDumper(yaml.SafeDumper):
    """YAML dumper that writes CfnTag values back in short form."""

    pass


def cfn_constructor(loader: yaml.Loader, node: yaml.Node) -> CfnTag:
    """Constructor for CloudFormation tags."""
    if isinstance(node, yaml.SequenceNode):
        return CfnTag(node.tag, loader.construct_sequence(node, deep=True))
    elif isinstance(node, yaml.MappingNode):
        return CfnTag(node.tag, loader.construct_mapping(node, deep=True))
    return CfnTag(node.tag, loader.construct_scalar(node))


def cfn_representer(dumper: yaml.Dumper, data: CfnTag) -> yaml.Node:
    if isinstance(data.value, list):
        return dumper.represent_sequence(data.tag, data.value)
    if isinstance(data.value, dict):
        return dumper.represent_mapping(data.tag, data.value)
    return dumper.represent_scalar(data.tag, data.value)


# Register CloudFormation tags.
for tag in CFN_TAGS:
    yaml.add_constructor(tag, cfn_constructor, Loader=CfnLoader)
yaml.add_representer(CfnTag, cfn_representer, Dumper=CfnDumper)


def find_service_file(directory: Union[str, Path]) -> Optional[Path]:
    """Return the first default service file present in ``directory``."""
    directory = Path(directory)
    for filename in DEFAULT_SERVICE_FILES:
        candidate = directory / filename
        if candidate.exists():
            return candidate
    return None


def load_service_file(
    path: Union[str, Path],
    options: Optional[Mapping[str, Any]] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> Dict[str, Any]:
    """Load and resolve a service definition.

    Args:
        path: Path to a YAML or JSON service file
        options: Values for ${opt:...} variables (stage, region)
        environ: Values for ${env:...} variables; defaults to os.environ

    Returns:
        The resolved service definition

    Raises:
        ConfigurationError: If the file cannot be read or is not a mapping
    """
    path = Path(path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            content = yaml.load(f, Loader=CfnLoader)
    except OSError as e:
        raise ConfigurationError(f"Could not read service file {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Could not parse service file {path}: {e}") from e

    if not isinstance(content, dict):
        raise ConfigurationError(f"Service file {path} must contain a mapping at the top level")

    logger.debug("Loaded service file %s", path)
    return resolve_all(content, options=options, environ=environ)


def dump_service(service: Mapping[str, Any], stream: Optional[IO[str]] = None) -> Optional[str]:
    """Serialize a service definition as YAML, keeping key order."""
    return yaml.dump(
        dict(service), stream, Dumper=CfnDumper, sort_keys=False, default_flow_style=False
    )


def write_service_file(service: Mapping[str, Any], path: Union[str, Path]) -> Path:
    """Write the service definition to ``path`` as YAML."""
    path = Path(path)
    with open(path, "w", encoding="utf-8") as f:
        dump_service(service, f)
    logger.info("Wrote patched service to %s", path)
    return path
