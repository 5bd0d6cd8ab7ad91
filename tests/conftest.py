import pytest
from click.testing import CliRunner
from unittest.mock import MagicMock

from aoe.models.config import Config
from aoe.models.session import Instance, SandboxInfo
from aoe.services.container_runtime import ContainerRuntime, RuntimeKind
from aoe.services.tmux_service import TmuxService


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


@pytest.fixture
def cli_runner():
    """Provides a Click CLI runner for testing commands."""
    return CliRunner()


@pytest.fixture
def mock_docker_client():
    """Provides a mocked Docker client."""
    mock_client = MagicMock()
    mock_client.ping.return_value = True
    mock_client.containers.list.return_value = []
    mock_client.images.list.return_value = []
    return mock_client


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def mock_tmux():
    """Provides a tmux service whose sessions all exist and are alive."""
    tmux = MagicMock(spec=TmuxService)
    tmux.session_exists.return_value = True
    tmux.is_pane_dead.return_value = False
    tmux.capture_pane.return_value = ""
    tmux.pane_title.return_value = ""
    return tmux


@pytest.fixture
def mock_backend():
    """Provides a container backend where nothing exists yet."""
    backend = MagicMock()
    backend.is_available.return_value = True
    backend.is_daemon_running.return_value = True
    backend.image_exists_locally.return_value = True
    backend.does_container_exist.return_value = False
    backend.is_container_running.return_value = False
    backend.create_container.return_value = "0123456789abcdef"
    backend.exec_command.side_effect = lambda name, options="": f"docker exec -it {options} {name}".replace("  ", " ")
    return backend


@pytest.fixture
def runtime(mock_backend):
    return ContainerRuntime(RuntimeKind.DOCKER, backend=mock_backend)


@pytest.fixture
def config():
    return Config()


@pytest.fixture
def plain_instance(tmp_path):
    """Provides an unsandboxed claude session."""
    return Instance(id="abcdef0123456789", title="My Project", project_path=str(tmp_path))


@pytest.fixture
def sandboxed_instance(tmp_path):
    """Provides a sandboxed claude session."""
    project = tmp_path / "webapp"
    project.mkdir()
    session_id = "fedcba9876543210"
    return Instance(
        id=session_id,
        title="Sandboxed",
        project_path=str(project),
        sandbox_info=SandboxInfo.for_session(session_id, "ghcr.io/njbrake/aoe-sandbox:latest"),
    )
