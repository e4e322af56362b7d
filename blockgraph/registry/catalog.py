"""The built-in CI/CD block catalog.

Order here is palette order. Step blocks route through fanout-limited
success/failed outputs; notifications continue through one plain output;
the parallel block fans out freely to its branches.
"""

from blockgraph.models import payloads as p
from blockgraph.models.block_type import (
    BRANCH_OUTPUT,
    FAILED_OUTPUT,
    JOIN_OUTPUT,
    SUCCESS_OUTPUT,
    BlockGroup,
    BlockType,
    BlockTypeDefinition,
    FixedOutputs,
    HandleSpec,
    LimitedOutputs,
    NoInput,
    SingleOutput,
)

SUCCESS_FAILED = LimitedOutputs(
    outputs=(
        HandleSpec(handle_id=SUCCESS_OUTPUT, label="Success", fanout_limit=1),
        HandleSpec(handle_id=FAILED_OUTPUT, label="Failed", fanout_limit=1),
    )
)

TRUE_FALSE = LimitedOutputs(
    outputs=(
        HandleSpec(handle_id=SUCCESS_OUTPUT, label="True", fanout_limit=1),
        HandleSpec(handle_id=FAILED_OUTPUT, label="False", fanout_limit=1),
    )
)

BRANCH_JOIN = FixedOutputs(
    outputs=(
        HandleSpec(handle_id=BRANCH_OUTPUT, label="Branches"),
        HandleSpec(handle_id=JOIN_OUTPUT, label="After all"),
    )
)


def _step(
    type_id: BlockType,
    label: str,
    category: BlockGroup,
    payload_model: type[p.BlockPayload],
    description: str,
    icon: str,
) -> BlockTypeDefinition:
    """A regular pipeline step with success/failed routing."""
    return BlockTypeDefinition(
        type_id=type_id,
        label=label,
        category=category,
        description=description,
        icon=icon,
        payload_model=payload_model,
        output_topology=SUCCESS_FAILED,
    )


BLOCK_DEFINITIONS: tuple[BlockTypeDefinition, ...] = (
    BlockTypeDefinition(
        type_id=BlockType.start,
        label="Pipeline Start",
        category=BlockGroup.start,
        description="Pipeline entry point",
        icon="▶️",
        payload_model=p.StartPayload,
        input_topology=NoInput(),
        output_topology=SingleOutput(),
        deletable=False,
    ),
    # prebuild
    _step(BlockType.os_package, "OS Packages", BlockGroup.prebuild,
          p.OSPackagePayload, "Install system packages", "📦"),
    _step(BlockType.node_version, "Node Version", BlockGroup.prebuild,
          p.NodeVersionPayload, "Select the Node.js runtime", "🟢"),
    _step(BlockType.environment_setup, "Environment", BlockGroup.prebuild,
          p.EnvironmentSetupPayload, "Set environment variables", "🌍"),
    # build
    _step(BlockType.install_module_node, "Install Packages", BlockGroup.build,
          p.InstallModuleNodePayload, "Install project dependencies", "⬇️"),
    _step(BlockType.build_webpack, "Webpack Build", BlockGroup.build,
          p.BuildWebpackPayload, "Bundle with webpack", "📦"),
    _step(BlockType.build_vite, "Vite Build", BlockGroup.build,
          p.BuildVitePayload, "Bundle with Vite", "⚡"),
    _step(BlockType.build_custom, "Custom Build", BlockGroup.build,
          p.BuildCustomPayload, "Run a custom build script", "🔨"),
    # test
    _step(BlockType.test_jest, "Jest Tests", BlockGroup.test,
          p.TestJestPayload, "Run Jest", "🧪"),
    _step(BlockType.test_mocha, "Mocha Tests", BlockGroup.test,
          p.TestMochaPayload, "Run Mocha", "☕"),
    _step(BlockType.test_vitest, "Vitest", BlockGroup.test,
          p.TestVitestPayload, "Run Vitest", "⚡"),
    _step(BlockType.test_playwright, "Playwright", BlockGroup.test,
          p.TestPlaywrightPayload, "Run Playwright end-to-end tests", "🎭"),
    _step(BlockType.test_custom, "Custom Tests", BlockGroup.test,
          p.TestCustomPayload, "Run a custom test script", "🧪"),
    # notification
    BlockTypeDefinition(
        type_id=BlockType.notification_slack,
        label="Slack Notify",
        category=BlockGroup.notification,
        description="Post a message to Slack",
        icon="💬",
        payload_model=p.NotificationSlackPayload,
        output_topology=SingleOutput(),
    ),
    BlockTypeDefinition(
        type_id=BlockType.notification_email,
        label="Email Notify",
        category=BlockGroup.notification,
        description="Send an email",
        icon="✉️",
        payload_model=p.NotificationEmailPayload,
        output_topology=SingleOutput(),
    ),
    # utility
    BlockTypeDefinition(
        type_id=BlockType.condition_branch,
        label="Condition",
        category=BlockGroup.utility,
        description="Branch on a condition",
        icon="🔀",
        payload_model=p.ConditionBranchPayload,
        output_topology=TRUE_FALSE,
    ),
    BlockTypeDefinition(
        type_id=BlockType.parallel_execution,
        label="Parallel",
        category=BlockGroup.utility,
        description="Run branches in parallel",
        icon="⚡",
        payload_model=p.ParallelExecutionPayload,
        output_topology=BRANCH_JOIN,
    ),
    _step(BlockType.custom_command, "Custom Command", BlockGroup.utility,
          p.CustomCommandPayload, "Run shell commands", "💻"),
)
