"""Block type descriptors.

A BlockTypeDefinition is the capability descriptor of one block variant:
its palette metadata, its payload schema and its handle topology. The
fanout limit of a handle is declared on the handle itself, so connection
rules never depend on matching handle names.
"""

from enum import Enum
from typing import Annotated, Any, Literal, Self

from pydantic import BaseModel, Field, model_validator

from blockgraph.models.payloads import BlockPayload

DEFAULT_INPUT = "default-input"
DEFAULT_OUTPUT = "default-output"
SUCCESS_OUTPUT = "success-output"
FAILED_OUTPUT = "failed-output"
BRANCH_OUTPUT = "branch-output"
JOIN_OUTPUT = "join-output"


class BlockGroup(str, Enum):
    """Palette categories."""

    start = "start"
    prebuild = "prebuild"
    build = "build"
    test = "test"
    deploy = "deploy"  # declared for the palette, no blocks yet
    notification = "notification"
    utility = "utility"


class BlockType(str, Enum):
    """The closed set of block variants."""

    start = "start"

    os_package = "os_package"
    node_version = "node_version"
    environment_setup = "environment_setup"

    install_module_node = "install_module_node"
    build_webpack = "build_webpack"
    build_vite = "build_vite"
    build_custom = "build_custom"

    test_jest = "test_jest"
    test_mocha = "test_mocha"
    test_vitest = "test_vitest"
    test_playwright = "test_playwright"
    test_custom = "test_custom"

    notification_slack = "notification_slack"
    notification_email = "notification_email"

    condition_branch = "condition_branch"
    parallel_execution = "parallel_execution"
    custom_command = "custom_command"


class HandleSpec(BaseModel):
    """a named attachment point on a block."""

    model_config = {"frozen": True}

    handle_id: str
    label: str | None = None
    fanout_limit: int | None = Field(default=None, ge=1)  # None means unconstrained

    @property
    def constrained(self) -> bool:
        return self.fanout_limit is not None


class _Topology(BaseModel):
    model_config = {"frozen": True}

    @property
    def handles(self) -> tuple[HandleSpec, ...]:
        raise NotImplementedError

    def get_handle(self, handle_id: str) -> HandleSpec | None:
        for handle in self.handles:
            if handle.handle_id == handle_id:
                return handle
        return None

    def handle_ids(self) -> list[str]:
        return [handle.handle_id for handle in self.handles]


class NoInput(_Topology):
    """the block accepts no incoming edges (the start block)."""

    kind: Literal["none"] = "none"

    @property
    def handles(self) -> tuple[HandleSpec, ...]:
        return ()


class SingleInput(_Topology):
    kind: Literal["single"] = "single"
    handle: HandleSpec = HandleSpec(handle_id=DEFAULT_INPUT)

    @property
    def handles(self) -> tuple[HandleSpec, ...]:
        return (self.handle,)


class SingleOutput(_Topology):
    """one unconstrained output handle."""

    kind: Literal["single"] = "single"
    handle: HandleSpec = HandleSpec(handle_id=DEFAULT_OUTPUT)

    @property
    def handles(self) -> tuple[HandleSpec, ...]:
        return (self.handle,)

    @model_validator(mode="after")
    def check_unconstrained(self) -> Self:
        if self.handle.constrained:
            raise ValueError("SingleOutput handle must be unconstrained")
        return self


class FixedOutputs(_Topology):
    """N fixed output handles, each unconstrained."""

    kind: Literal["fixed"] = "fixed"
    outputs: tuple[HandleSpec, ...]

    @property
    def handles(self) -> tuple[HandleSpec, ...]:
        return self.outputs

    @model_validator(mode="after")
    def check_handles(self) -> Self:
        _check_unique(self.outputs)
        if any(handle.constrained for handle in self.outputs):
            raise ValueError("FixedOutputs handles must be unconstrained")
        return self


class LimitedOutputs(_Topology):
    """N fixed output handles, each with a fanout limit."""

    kind: Literal["limited"] = "limited"
    outputs: tuple[HandleSpec, ...]

    @property
    def handles(self) -> tuple[HandleSpec, ...]:
        return self.outputs

    @model_validator(mode="after")
    def check_handles(self) -> Self:
        _check_unique(self.outputs)
        if not all(handle.constrained for handle in self.outputs):
            raise ValueError("LimitedOutputs handles must all declare a fanout_limit")
        return self


def _check_unique(handles: tuple[HandleSpec, ...]) -> None:
    ids = [handle.handle_id for handle in handles]
    if not ids:
        raise ValueError("at least one output handle is required")
    if len(ids) != len(set(ids)):
        raise ValueError(f"duplicate handle ids: {ids}")


InputTopology = Annotated[NoInput | SingleInput, Field(discriminator="kind")]
OutputTopology = Annotated[
    SingleOutput | FixedOutputs | LimitedOutputs, Field(discriminator="kind")
]


class BlockTypeDefinition(BaseModel):
    """Immutable descriptor of a block type, defined once at registry build time."""

    model_config = {"frozen": True}

    type_id: BlockType
    label: str
    category: BlockGroup
    description: str = ""
    icon: str | None = None
    payload_model: type[BlockPayload]
    input_topology: InputTopology = SingleInput()
    output_topology: OutputTopology
    deletable: bool = True

    @model_validator(mode="after")
    def validate_start_rules(self) -> Self:
        """Only the start block is protected, and it takes no input."""
        is_start = self.type_id == BlockType.start
        if is_start and self.deletable:
            raise ValueError("the start block must not be deletable")
        if not is_start and not self.deletable:
            raise ValueError(f"{self.type_id.value}: only the start block may be protected")
        if is_start and self.input_topology.handles:
            raise ValueError("the start block cannot declare input handles")
        return self

    @property
    def default_payload(self) -> dict[str, Any]:
        """A fresh payload dict; never shared between callers."""
        return self.payload_model(label=self.label).model_dump(by_alias=True, mode="json")

    def validate_payload(self, payload: dict[str, Any]) -> BlockPayload:
        """Validate a payload dict; raises pydantic.ValidationError."""
        return self.payload_model.model_validate(payload)

    def output_handle(self, handle_id: str) -> HandleSpec | None:
        return self.output_topology.get_handle(handle_id)

    def input_handle(self, handle_id: str) -> HandleSpec | None:
        return self.input_topology.get_handle(handle_id)

    def is_fanout_limited(self, handle_id: str) -> bool:
        handle = self.output_handle(handle_id)
        return handle is not None and handle.constrained
