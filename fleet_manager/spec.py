# /*
# Copyright 2026 The Grove Authors.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
# */

"""Immutable node recipes (NodeSpec) and node roles."""

from __future__ import annotations

import json
from dataclasses import dataclass, field, replace
from enum import Enum
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, BinaryIO, Callable, Mapping

from pydantic import BaseModel

from fleet_manager.constants import DEFAULT_IMAGE_TAG, LABEL_NODE_CLIENT, LABEL_NODE_TYPE

if TYPE_CHECKING:
    from fleet_manager.node import Node

ReadinessProbe = Callable[["Node"], None]


# ============================================================================
# Roles
# ============================================================================

class NodeKind(str, Enum):
    """What a node does in the fleet."""

    BEACON = "beacon"
    VALIDATOR = "validator"
    EXECUTION = "execution"
    BOOTNODE = "bootnode"


class Client(str, Enum):
    """Client implementation running inside a node."""

    TEKU = "teku"
    LIGHTHOUSE = "lighthouse"
    PRYSM = "prysm"
    GETH = "geth"
    OTHER = "other"


@dataclass(frozen=True)
class NodeRole:
    """Tagged role of a node: its kind and the client implementing it."""

    kind: NodeKind
    client: Client

    def labels(self) -> dict[str, str]:
        """Render the role as the NodeType/NodeClient label pair."""
        return {
            LABEL_NODE_TYPE: self.kind.value.title(),
            LABEL_NODE_CLIENT: self.client.value.title(),
        }


# ============================================================================
# File encoding
# ============================================================================

def encode_file_content(obj: Any) -> bytes:
    """Encode a value for staging as a file inside a container.

    Args:
        obj: ``str`` (UTF-8), ``bytes``/``bytearray`` (verbatim), a pydantic
            model (JSON) or any JSON-serializable value.

    Returns:
        The file content.

    Raises:
        TypeError: If the value has no known encoding.
    """
    if isinstance(obj, str):
        return obj.encode("utf-8")
    if isinstance(obj, (bytes, bytearray)):
        return bytes(obj)
    if isinstance(obj, BaseModel):
        return obj.model_dump_json().encode("utf-8")
    try:
        return json.dumps(obj).encode("utf-8")
    except (TypeError, ValueError) as e:
        raise TypeError(f"cannot encode {type(obj).__name__} as file content: {e}") from e


# ============================================================================
# NodeSpec
# ============================================================================

def _frozen(mapping: Mapping) -> Mapping:
    return MappingProxyType(dict(mapping))


@dataclass(frozen=True)
class NodeSpec:
    """Declarative recipe for one containerized node.

    Every ``with_*`` method returns a new spec and leaves the receiver
    untouched, so a base recipe can be shared between deployments.

    Attributes:
        repository: Container image repository.
        tag: Image tag.
        args: Argument templates; ``{port[<name>]}`` placeholders are
            resolved at deploy time.
        entrypoint: Entry point override, or None for the image default.
        mounts: Container paths backed by fresh host directories.
        files: Absolute container path to file content, staged under mounts.
        user_labels: Extra container labels.
        probe: Readiness probe; raises while the node is not ready.
        name: Node name, unique within a fleet.
        user: Container user override.
        role: Kind and client of the node.
        outputs: Sinks receiving the node's combined output.
    """

    repository: str = ""
    tag: str = DEFAULT_IMAGE_TAG
    args: tuple[str, ...] = ()
    entrypoint: tuple[str, ...] | None = None
    mounts: tuple[str, ...] = ()
    files: Mapping[str, bytes] = field(default_factory=lambda: _frozen({}))
    user_labels: Mapping[str, str] = field(default_factory=lambda: _frozen({}))
    probe: ReadinessProbe | None = None
    name: str = ""
    user: str | None = None
    role: NodeRole | None = None
    outputs: tuple[BinaryIO, ...] = ()

    @property
    def image(self) -> str:
        return f"{self.repository}:{self.tag}"

    @property
    def labels(self) -> dict[str, str]:
        """User labels merged with the role labels."""
        labels = dict(self.user_labels)
        if self.role is not None:
            labels.update(self.role.labels())
        return labels

    def has_label(self, key: str, value: str) -> bool:
        return self.labels.get(key) == value

    def with_image(self, repository: str) -> NodeSpec:
        return replace(self, repository=repository)

    def with_tag(self, tag: str) -> NodeSpec:
        return replace(self, tag=tag)

    def with_args(self, *args: str) -> NodeSpec:
        """Append arguments to the command template."""
        return replace(self, args=self.args + tuple(args))

    def with_entrypoint(self, *entrypoint: str) -> NodeSpec:
        return replace(self, entrypoint=tuple(entrypoint))

    def with_mount(self, path: str) -> NodeSpec:
        if path in self.mounts:
            return self
        return replace(self, mounts=self.mounts + (path,))

    def with_file(self, path: str, obj: Any) -> NodeSpec:
        """Stage a file at an absolute container path.

        Raises:
            TypeError: If *obj* cannot be encoded, see encode_file_content.
        """
        files = dict(self.files)
        files[path] = encode_file_content(obj)
        return replace(self, files=_frozen(files))

    def with_label(self, key: str, value: str) -> NodeSpec:
        return self.with_labels({key: value})

    def with_labels(self, labels: Mapping[str, str]) -> NodeSpec:
        merged = dict(self.user_labels)
        merged.update(labels)
        return replace(self, user_labels=_frozen(merged))

    def with_probe(self, probe: ReadinessProbe) -> NodeSpec:
        return replace(self, probe=probe)

    def with_name(self, name: str) -> NodeSpec:
        return replace(self, name=name)

    def with_user(self, user: str) -> NodeSpec:
        return replace(self, user=user)

    def with_role(self, kind: NodeKind, client: Client) -> NodeSpec:
        return replace(self, role=NodeRole(kind, client))

    def with_output(self, sink: BinaryIO) -> NodeSpec:
        return replace(self, outputs=self.outputs + (sink,))
