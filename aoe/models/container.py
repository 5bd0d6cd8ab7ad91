"""Container launch models."""

from dataclasses import dataclass, field
from typing import List, Optional, Tuple


@dataclass
class VolumeMount:
    """Bind mount of a host path into a container."""
    host_path: str
    container_path: str
    read_only: bool = False

    def to_spec(self) -> str:
        """Render as ``host:container[:ro]``."""
        spec = f"{self.host_path}:{self.container_path}"
        return f"{spec}:ro" if self.read_only else spec

    @classmethod
    def parse(cls, spec: str) -> Optional['VolumeMount']:
        """Parse a ``host:container[:ro]`` string, returning None if malformed."""
        parts = spec.split(":")
        if len(parts) < 2 or not parts[0] or not parts[1]:
            return None
        read_only = len(parts) > 2 and parts[2] == "ro"
        return cls(host_path=parts[0], container_path=parts[1], read_only=read_only)


@dataclass
class ContainerConfig:
    """Everything needed to create a sandbox container."""
    working_dir: str
    volumes: List[VolumeMount] = field(default_factory=list)
    named_volumes: List[Tuple[str, str]] = field(default_factory=list)  # (volume, container path)
    environment: List[Tuple[str, str]] = field(default_factory=list)
    cpu_limit: Optional[str] = None
    memory_limit: Optional[str] = None

    def run_args(self, name: str, image: str, read_only_mounts: bool = True) -> List[str]:
        """Build the ``run`` argv shared by CLI based runtimes.

        Args:
            name: Container name
            image: Image reference
            read_only_mounts: Whether the runtime honours ``:ro`` bind mounts

        Returns:
            Arguments following the runtime binary
        """
        args = ["run", "-d", "--name", name, "-w", self.working_dir]

        for volume in self.volumes:
            if read_only_mounts:
                args.extend(["-v", volume.to_spec()])
            else:
                args.extend(["-v", f"{volume.host_path}:{volume.container_path}"])

        for volume_name, container_path in self.named_volumes:
            args.extend(["-v", f"{volume_name}:{container_path}"])

        for key, value in self.environment:
            args.extend(["-e", f"{key}={value}"])

        if self.cpu_limit:
            args.extend(["--cpus", self.cpu_limit])
        if self.memory_limit:
            args.extend(["-m", self.memory_limit])

        args.extend([image, "sleep", "infinity"])
        return args


@dataclass
class CommandOutput:
    """Raw result of a non-interactive command run in a container."""
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def success(self) -> bool:
        return self.returncode == 0
