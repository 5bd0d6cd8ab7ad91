"""Tests for Docker service."""

from unittest.mock import Mock, MagicMock, patch
import pytest
import docker.errors

from aoe.models.container import ContainerConfig, VolumeMount
from aoe.services.docker_service import DockerService
from aoe.services.exceptions import (
    CommandFailedError,
    ContainerAlreadyExistsError,
    ContainerNotFoundError,
    CreateFailedError,
    DaemonNotRunningError,
    ImageNotFoundError,
    PermissionDeniedError,
    RemoveFailedError,
    StartFailedError,
    StopFailedError,
)


def api_error(message):
    return docker.errors.APIError(message)


class TestDockerServiceProbes:
    """Test cases for availability probes."""

    @patch('docker.from_env')
    def test_client_created_lazily(self, mock_from_env, mock_docker_client):
        mock_from_env.return_value = mock_docker_client

        service = DockerService()
        mock_from_env.assert_not_called()

        assert service.client == mock_docker_client
        mock_from_env.assert_called_once()

    @patch('docker.from_env')
    def test_daemon_not_running(self, mock_from_env):
        mock_from_env.side_effect = docker.errors.DockerException("connection refused")

        service = DockerService()
        assert not service.is_daemon_running()
        with pytest.raises(DaemonNotRunningError, match="Docker daemon is not running"):
            service.client

    @patch('docker.from_env')
    def test_socket_permission_denied(self, mock_from_env):
        mock_from_env.side_effect = docker.errors.DockerException(
            "Error while fetching server API version: ('Connection aborted.', PermissionError(13, 'Permission denied'))"
        )

        with pytest.raises(PermissionDeniedError, match="usermod -aG docker"):
            DockerService().client

    @patch('docker.from_env')
    def test_other_connection_error(self, mock_from_env):
        mock_from_env.side_effect = docker.errors.DockerException("bad TLS config")

        with pytest.raises(CommandFailedError, match="Failed to connect to Docker"):
            DockerService().client

    @patch('docker.from_env')
    def test_queries_without_daemon(self, mock_from_env):
        mock_from_env.side_effect = docker.errors.DockerException("connection refused")
        service = DockerService()

        assert not service.image_exists_locally("alpine:3")
        assert not service.does_container_exist("aoe-sandbox-1")

    def test_daemon_running(self, mock_docker_client):
        assert DockerService(mock_docker_client).is_daemon_running()
        mock_docker_client.ping.assert_called_once()

    @patch('aoe.services.docker_service.shutil.which')
    def test_is_available(self, mock_which):
        mock_which.return_value = "/usr/bin/docker"
        assert DockerService(Mock()).is_available()

        mock_which.return_value = None
        assert not DockerService(Mock()).is_available()

    def test_version(self, mock_docker_client):
        mock_docker_client.version.return_value = {"Version": "27.0.3"}
        assert DockerService(mock_docker_client).version() == "Docker version 27.0.3"

    def test_version_unreachable(self, mock_docker_client):
        mock_docker_client.version.side_effect = docker.errors.APIError("down")
        assert DockerService(mock_docker_client).version() is None


class TestDockerServiceImages:
    """Test cases for images and volumes."""

    def test_image_exists_locally(self, mock_docker_client):
        service = DockerService(mock_docker_client)
        assert service.image_exists_locally("alpine:3")

        mock_docker_client.images.get.side_effect = docker.errors.ImageNotFound("missing")
        assert not service.image_exists_locally("alpine:3")

    def test_pull_image(self, mock_docker_client):
        DockerService(mock_docker_client).pull_image("alpine:3")
        mock_docker_client.images.pull.assert_called_once_with("alpine:3")

    def test_pull_image_rejected(self, mock_docker_client):
        mock_docker_client.images.pull.side_effect = docker.errors.NotFound("manifest unknown")

        with pytest.raises(ImageNotFoundError, match="Docker image not found: nope:1"):
            DockerService(mock_docker_client).pull_image("nope:1")

    def test_ensure_named_volume_exists(self, mock_docker_client):
        DockerService(mock_docker_client).ensure_named_volume("aoe-claude-auth")
        mock_docker_client.volumes.create.assert_not_called()

    def test_ensure_named_volume_creates(self, mock_docker_client):
        mock_docker_client.volumes.get.side_effect = docker.errors.NotFound("no such volume")

        DockerService(mock_docker_client).ensure_named_volume("aoe-claude-auth")

        mock_docker_client.volumes.create.assert_called_once_with(name="aoe-claude-auth")

    def test_ensure_named_volume_failure(self, mock_docker_client):
        mock_docker_client.volumes.get.side_effect = docker.errors.NotFound("no such volume")
        mock_docker_client.volumes.create.side_effect = api_error("disk full")

        with pytest.raises(CommandFailedError, match="Failed to create volume aoe-claude-auth"):
            DockerService(mock_docker_client).ensure_named_volume("aoe-claude-auth")


class TestDockerServiceContainers:
    """Test cases for container lifecycle."""

    @pytest.fixture
    def config(self):
        return ContainerConfig(
            working_dir="/workspace/app",
            volumes=[VolumeMount("/src/app", "/workspace/app"), VolumeMount("/home/u/.gitconfig", "/root/.gitconfig", True)],
            named_volumes=[("aoe-claude-auth", "/root/.claude")],
            environment=[("TERM", "xterm")],
            cpu_limit="1.5",
            memory_limit="2g",
        )

    def test_exists_and_running(self, mock_docker_client):
        container = MagicMock()
        container.attrs = {"State": {"Status": "running"}}
        mock_docker_client.containers.get.return_value = container
        service = DockerService(mock_docker_client)

        assert service.does_container_exist("aoe-sandbox-1")
        assert service.is_container_running("aoe-sandbox-1")

        container.attrs = {"State": {"Status": "exited"}}
        assert not service.is_container_running("aoe-sandbox-1")

    def test_missing_container(self, mock_docker_client):
        mock_docker_client.containers.get.side_effect = docker.errors.NotFound("No such container")
        service = DockerService(mock_docker_client)

        assert not service.does_container_exist("aoe-sandbox-1")
        assert not service.is_container_running("aoe-sandbox-1")

    def test_create_container(self, mock_docker_client, config):
        mock_docker_client.containers.get.side_effect = docker.errors.NotFound("No such container")
        mock_docker_client.containers.run.return_value = Mock(id="abc123")

        container_id = DockerService(mock_docker_client).create_container("aoe-sandbox-1", "alpine:3", config)

        assert container_id == "abc123"
        mock_docker_client.containers.run.assert_called_once_with(
            "alpine:3",
            command=["sleep", "infinity"],
            name="aoe-sandbox-1",
            detach=True,
            working_dir="/workspace/app",
            volumes=[
                "/src/app:/workspace/app",
                "/home/u/.gitconfig:/root/.gitconfig:ro",
                "aoe-claude-auth:/root/.claude",
            ],
            environment=["TERM=xterm"],
            nano_cpus=1_500_000_000,
            mem_limit="2g",
        )

    def test_create_existing_container(self, mock_docker_client, config):
        service = DockerService(mock_docker_client)

        with pytest.raises(ContainerAlreadyExistsError, match="Container already exists: aoe-sandbox-1"):
            service.create_container("aoe-sandbox-1", "alpine:3", config)
        mock_docker_client.containers.run.assert_not_called()

    @pytest.mark.parametrize("message,expected", [
        ("permission denied while trying to connect", PermissionDeniedError),
        ("Cannot connect to the Docker daemon at unix:///var/run/docker.sock", DaemonNotRunningError),
        ("No such image: alpine:3", ImageNotFoundError),
        ("invalid mount config", CreateFailedError),
    ])
    def test_create_failure_mapping(self, mock_docker_client, config, message, expected):
        mock_docker_client.containers.get.side_effect = docker.errors.NotFound("No such container")
        mock_docker_client.containers.run.side_effect = api_error(message)

        with pytest.raises(expected):
            DockerService(mock_docker_client).create_container("aoe-sandbox-1", "alpine:3", config)

    def test_create_image_not_found(self, mock_docker_client, config):
        mock_docker_client.containers.get.side_effect = docker.errors.NotFound("No such container")
        mock_docker_client.containers.run.side_effect = docker.errors.ImageNotFound("pull access denied")

        with pytest.raises(ImageNotFoundError, match="Docker image not found: alpine:3"):
            DockerService(mock_docker_client).create_container("aoe-sandbox-1", "alpine:3", config)

    def test_start_missing_container(self, mock_docker_client):
        mock_docker_client.containers.get.side_effect = docker.errors.NotFound("No such container")

        with pytest.raises(StartFailedError, match="No such container: aoe-sandbox-1"):
            DockerService(mock_docker_client).start_container("aoe-sandbox-1")

    def test_stop_missing_container(self, mock_docker_client):
        mock_docker_client.containers.get.side_effect = docker.errors.NotFound("No such container")

        with pytest.raises(ContainerNotFoundError):
            DockerService(mock_docker_client).stop_container("aoe-sandbox-1")

    def test_stop_failure(self, mock_docker_client):
        mock_docker_client.containers.get.return_value.stop.side_effect = api_error("timeout")

        with pytest.raises(StopFailedError, match="Failed to stop container"):
            DockerService(mock_docker_client).stop_container("aoe-sandbox-1")

    def test_remove(self, mock_docker_client):
        DockerService(mock_docker_client).remove("aoe-sandbox-1", force=True)
        mock_docker_client.containers.get.return_value.remove.assert_called_once_with(force=True)

    def test_remove_failure(self, mock_docker_client):
        mock_docker_client.containers.get.return_value.remove.side_effect = api_error("device busy")

        with pytest.raises(RemoveFailedError):
            DockerService(mock_docker_client).remove("aoe-sandbox-1")

    def test_exec(self, mock_docker_client):
        container = mock_docker_client.containers.get.return_value
        container.exec_run.return_value = Mock(exit_code=0, output=(b"hello\n", None))

        output = DockerService(mock_docker_client).exec("aoe-sandbox-1", ["echo", "hello"])

        assert output.success
        assert output.stdout == "hello\n"
        assert output.stderr == ""
        container.exec_run.assert_called_once_with(["echo", "hello"], demux=True)

    def test_exec_command(self):
        service = DockerService(Mock())
        assert service.exec_command("aoe-sandbox-1") == "docker exec -it aoe-sandbox-1"
        assert service.exec_command("aoe-sandbox-1", "-w /workspace ") == "docker exec -it -w /workspace aoe-sandbox-1"
