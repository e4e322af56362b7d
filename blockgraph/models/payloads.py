"""Payload schemas for every block type.

A node's ``payload`` (the ``data`` object of the persisted node) must
validate against the schema of its block type. Keys are camelCase on the
wire, matching what the canvas and the pipeline backend exchange.
"""

from typing import Literal

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel

PackageManager = Literal["npm", "yarn", "pnpm"]
BuildMode = Literal["development", "production"]


class CamelModel(BaseModel):
    """Base for wire models: camelCase aliases, unknown keys rejected."""

    model_config = {
        "alias_generator": to_camel,
        "populate_by_name": True,
        "extra": "forbid",
    }


class BlockPayload(CamelModel):
    """fields shared by every block."""

    label: str
    block_type: str
    group_type: str
    block_id: str | None = None  # backend id, falls back to the node id on export
    description: str | None = None
    timeout: int | None = Field(default=None, ge=0)
    retry_count: int | None = Field(default=None, ge=0)


# ---- start ----


class TriggerConfig(CamelModel):
    schedule: str | None = None  # cron expression
    branch_patterns: list[str] = Field(default_factory=list)
    file_patterns: list[str] = Field(default_factory=list)


class StartPayload(BlockPayload):
    label: str = "Pipeline Start"
    block_type: Literal["start"] = "start"
    group_type: Literal["start"] = "start"
    trigger_type: Literal["manual", "schedule", "webhook", "push", "pullRequest"] = "manual"
    trigger_config: TriggerConfig | None = None


# ---- prebuild ----


class OSPackagePayload(BlockPayload):
    label: str = "OS Packages"
    block_type: Literal["os_package"] = "os_package"
    group_type: Literal["prebuild"] = "prebuild"
    package_manager: Literal["apt", "yum", "dnf", "apk", "zypper", "pacman", "brew"] = "apt"
    install_packages: list[str] = Field(default_factory=list)
    update_package_list: bool = True


class NodeVersionPayload(BlockPayload):
    label: str = "Node Version"
    block_type: Literal["node_version"] = "node_version"
    group_type: Literal["prebuild"] = "prebuild"
    version: str = "20"
    package_manager: PackageManager | None = "npm"


class EnvironmentSetupPayload(BlockPayload):
    label: str = "Environment"
    block_type: Literal["environment_setup"] = "environment_setup"
    group_type: Literal["prebuild"] = "prebuild"
    environment_variables: dict[str, str] = Field(default_factory=dict)
    load_from_file: str | None = None


# ---- build ----


class InstallModuleNodePayload(BlockPayload):
    label: str = "Install Packages"
    block_type: Literal["install_module_node"] = "install_module_node"
    group_type: Literal["build"] = "build"
    package_manager: PackageManager = "npm"
    install_packages: list[str] = Field(default_factory=list)
    install_dev_dependencies: bool = False
    production_only: bool = False
    clean_install: bool = True


class BuildWebpackPayload(BlockPayload):
    label: str = "Webpack Build"
    block_type: Literal["build_webpack"] = "build_webpack"
    group_type: Literal["build"] = "build"
    config_file: str | None = None
    mode: BuildMode = "production"
    output_path: str | None = None
    additional_options: list[str] = Field(default_factory=list)


class BuildVitePayload(BlockPayload):
    label: str = "Vite Build"
    block_type: Literal["build_vite"] = "build_vite"
    group_type: Literal["build"] = "build"
    config_file: str | None = None
    mode: BuildMode = "production"
    base_path: str | None = None
    output_dir: str | None = None


class BuildCustomPayload(BlockPayload):
    label: str = "Custom Build"
    block_type: Literal["build_custom"] = "build_custom"
    group_type: Literal["build"] = "build"
    package_manager: PackageManager = "npm"
    script_name: str | None = "build"
    custom_commands: list[str] = Field(default_factory=list)
    working_directory: str | None = None


# ---- test ----


class TestJestPayload(BlockPayload):
    __test__ = False  # keep pytest from collecting Test* models

    label: str = "Jest Tests"
    block_type: Literal["test_jest"] = "test_jest"
    group_type: Literal["test"] = "test"
    config_file: str | None = None
    test_pattern: str | None = None
    coverage: bool = False
    watch_mode: bool = False
    max_workers: int | None = Field(default=None, ge=1)
    additional_options: list[str] = Field(default_factory=list)


class TestMochaPayload(BlockPayload):
    __test__ = False

    label: str = "Mocha Tests"
    block_type: Literal["test_mocha"] = "test_mocha"
    group_type: Literal["test"] = "test"
    test_files: list[str] = Field(default_factory=list)
    config_file: str | None = None
    reporter: Literal["spec", "json", "html", "tap", "dot"] = "spec"
    grep: str | None = None


class TestVitestPayload(BlockPayload):
    __test__ = False

    label: str = "Vitest"
    block_type: Literal["test_vitest"] = "test_vitest"
    group_type: Literal["test"] = "test"
    config_file: str | None = None
    coverage: bool = False
    ui: bool = False
    watch_mode: bool = False
    environment: Literal["node", "jsdom", "happy-dom"] = "node"


class TestPlaywrightPayload(BlockPayload):
    __test__ = False

    label: str = "Playwright"
    block_type: Literal["test_playwright"] = "test_playwright"
    group_type: Literal["test"] = "test"
    config_file: str | None = None
    project: str | None = None
    headed: bool = False
    debug: bool = False
    browsers: list[Literal["chromium", "firefox", "webkit"]] = Field(
        default_factory=lambda: ["chromium"]
    )


class TestCustomPayload(BlockPayload):
    __test__ = False

    label: str = "Custom Tests"
    block_type: Literal["test_custom"] = "test_custom"
    group_type: Literal["test"] = "test"
    package_manager: PackageManager = "npm"
    script_name: str | None = "test"
    custom_commands: list[str] = Field(default_factory=list)
    generate_reports: bool = False
    coverage_threshold: float | None = Field(default=None, ge=0, le=100)


# ---- notification ----


class NotificationSlackPayload(BlockPayload):
    label: str = "Slack Notify"
    block_type: Literal["notification_slack"] = "notification_slack"
    group_type: Literal["notification"] = "notification"
    webhook_url_env: str = "SLACK_WEBHOOK_URL"
    channel: str | None = None
    message_template: str = "Pipeline {{pipeline}} finished with status {{status}}"
    on_success_only: bool = False
    on_failure_only: bool = False


class SmtpConfig(CamelModel):
    host: str = "smtp.example.com"
    port: int = Field(default=587, ge=1, le=65535)
    username_env: str = "SMTP_USERNAME"
    password_env: str = "SMTP_PASSWORD"


class NotificationEmailPayload(BlockPayload):
    label: str = "Email Notify"
    block_type: Literal["notification_email"] = "notification_email"
    group_type: Literal["notification"] = "notification"
    smtp_config: SmtpConfig = Field(default_factory=SmtpConfig)
    recipients: list[str] = Field(default_factory=list)
    subject_template: str = "[{{pipeline}}] {{status}}"
    body_template: str = "Pipeline {{pipeline}} finished with status {{status}}."


# ---- utility ----


class ConditionConfig(CamelModel):
    environment_var: str | None = None
    expected_value: str | None = None
    file_path: str | None = None
    command: str | None = None
    custom_script: str | None = None


class ConditionBranchPayload(BlockPayload):
    label: str = "Condition"
    block_type: Literal["condition_branch"] = "condition_branch"
    group_type: Literal["utility"] = "utility"
    condition_type: Literal["environment", "fileExists", "commandOutput", "custom"] = "environment"
    condition_config: ConditionConfig = Field(default_factory=ConditionConfig)
    # filled from the success/failed edges when the pipeline is exported
    on_condition_true: str | None = None
    on_condition_false: str | None = None


class ParallelExecutionPayload(BlockPayload):
    label: str = "Parallel"
    block_type: Literal["parallel_execution"] = "parallel_execution"
    group_type: Literal["utility"] = "utility"
    parallel_branches: list[str] = Field(default_factory=list)
    wait_for_all: bool = True
    fail_fast: bool = False
    on_all_success: str | None = None
    on_any_failure: str | None = None


class CustomCommandPayload(BlockPayload):
    label: str = "Custom Command"
    block_type: Literal["custom_command"] = "custom_command"
    group_type: Literal["utility"] = "utility"
    commands: list[str] = Field(default_factory=list)
    working_directory: str | None = None
    shell: Literal["bash", "sh", "zsh", "fish"] = "bash"
    environment_variables: dict[str, str] = Field(default_factory=dict)
    ignore_errors: bool = False
