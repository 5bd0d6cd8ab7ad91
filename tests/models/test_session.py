"""Tests for session models."""

import json

from aoe.core.constants import DEFAULT_SANDBOX_IMAGE
from aoe.models.session import (
    Instance,
    SandboxInfo,
    Status,
    generate_container_name,
    generate_session_id,
    generate_tmux_name,
)


class TestNames:
    """Test suite for derived names."""

    def test_session_id(self):
        session_id = generate_session_id()
        assert len(session_id) == 16
        assert session_id != generate_session_id()

    def test_container_name(self):
        assert generate_container_name("fedcba9876543210") == "aoe-sandbox-fedcba98"

    def test_tmux_name_sanitizes_title(self):
        assert generate_tmux_name("abcdef0123456789", "fix: the bug!") == "aoe_fix__the_bug__abcdef01"

    def test_tmux_name_truncates_long_title(self):
        name = generate_tmux_name("abcdef0123456789", "a" * 40)
        assert name == "aoe_" + "a" * 20 + "_abcdef01"


class TestInstance:
    """Test suite for Instance."""

    def test_defaults(self, plain_instance):
        assert plain_instance.tool == "claude"
        assert plain_instance.status == Status.IDLE
        assert not plain_instance.is_sandboxed()
        assert not plain_instance.is_yolo_mode()
        assert plain_instance.tmux_session_name == "aoe_My_Project_abcdef01"

    def test_sandboxed(self, sandboxed_instance):
        assert sandboxed_instance.is_sandboxed()
        assert sandboxed_instance.sandbox_info.container_name == "aoe-sandbox-fedcba98"

    def test_yolo_mode(self):
        info = SandboxInfo.for_session("fedcba9876543210", DEFAULT_SANDBOX_IMAGE, yolo_mode=True)
        instance = Instance(id="fedcba9876543210", title="t", project_path="/src", sandbox_info=info)
        assert instance.is_yolo_mode()

        info.enabled = False
        assert not instance.is_yolo_mode()

    def test_tool_command(self):
        assert Instance(title="t", project_path="/src", tool="opencode").get_tool_command() == "opencode"
        assert Instance(title="t", project_path="/src", tool="unknown").get_tool_command() == "bash"
        assert Instance(title="t", project_path="/src", command="claude --resume").get_tool_command() == \
            "claude --resume"

    def test_runtime_state_not_serialized(self, plain_instance):
        plain_instance.captured_output = "output"
        plain_instance.last_error = "boom"
        plain_instance.last_start_time = 12.5

        data = json.loads(plain_instance.model_dump_json())

        assert "captured_output" not in data
        assert "last_error" not in data
        assert "last_start_time" not in data
        assert data["status"] == "idle"

    def test_round_trip_keeps_sandbox(self, sandboxed_instance):
        loaded = Instance.model_validate_json(sandboxed_instance.model_dump_json())
        assert loaded.sandbox_info == sandboxed_instance.sandbox_info
