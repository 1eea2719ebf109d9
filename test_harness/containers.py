"""Container lifecycle for the end-to-end harness.

The image is built once through ``make``. Containers are started, stopped
and swept through the Docker SDK. Stop and sweep never raise: a container
that cannot be stopped is logged and left to the final sweep.
"""

import concurrent.futures
import subprocess
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

import docker
import structlog
from docker.errors import DockerException, NotFound
from docker.models.containers import Container

from .config.loader import HarnessConfig
from .errors import ContainerStartError, ImageBuildError

logger = structlog.get_logger(__name__)

SHORT_ID_LENGTH = 12
SWEEP_MAX_WORKERS = 8


@dataclass(frozen=True)
class ContainerHandle:
    """A started container: its short id and the host port it publishes."""

    container_id: str
    port: int | None = None


class ContainerLifecycleManager:
    """Builds the server image and owns the containers started from it."""

    def __init__(
        self,
        config: HarnessConfig,
        docker_client: docker.DockerClient | None = None,
        run_command: Callable[..., subprocess.CompletedProcess] = subprocess.run,
    ):
        """Initialize the manager.

        Args:
            config: Harness configuration
            docker_client: Docker client; created from the environment on first use
            run_command: Runs the build command, ``subprocess.run`` by default
        """
        self.config = config
        self._docker = docker_client
        self._run_command = run_command
        self._built = False
        self.logger = logger.bind(image=config.image.tag)

    @property
    def image_tag(self) -> str:
        return self.config.image.tag

    @property
    def docker(self) -> docker.DockerClient:
        if self._docker is None:
            self._docker = docker.from_env()
        return self._docker

    def build(self) -> None:
        """Build the image at most once for this manager.

        Raises:
            ImageBuildError: If the build command is missing or exits non-zero
        """
        if self._built:
            return

        command = self.config.image.build_command()
        cwd = self.config.image.project_root
        self.logger.info("Building server image", command=" ".join(command), cwd=str(cwd))

        try:
            result = self._run_command(
                command,
                cwd=cwd,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                check=False,
            )
        except OSError as e:
            raise ImageBuildError(f"failed to run {' '.join(command)}: {e}") from e

        if result.returncode != 0:
            raise ImageBuildError(
                f"image build exited with status {result.returncode}",
                result.stdout or "",
            )

        self._built = True
        self.logger.info("Server image built")

    def start(self, mode: str, port: int | None = None) -> ContainerHandle:
        """Start a detached, auto-removed container in the given MODE.

        Raises:
            ContainerStartError: If the container cannot be launched
        """
        ports: dict[str, Any] = {}
        if port is not None:
            ports[f"{self.config.container.internal_port}/tcp"] = port

        try:
            container = self.docker.containers.run(
                self.image_tag,
                detach=True,
                auto_remove=True,
                environment={"MODE": mode},
                ports=ports,
            )
        except DockerException as e:
            raise ContainerStartError(f"failed to start {mode} container: {e}") from e

        container_id = (getattr(container, "id", None) or "")[:SHORT_ID_LENGTH]
        if not container_id:
            raise ContainerStartError(f"{mode} container started without an id")

        self.logger.info("Started container", container_id=container_id, mode=mode, port=port)
        return ContainerHandle(container_id=container_id, port=port)

    def stop(self, handle: ContainerHandle | str) -> None:
        """Stop a container, killing it if the graceful stop fails.

        Failures are logged as warnings. A container that is already gone is
        treated as stopped.
        """
        container_id = handle.container_id if isinstance(handle, ContainerHandle) else handle
        try:
            container = self.docker.containers.get(container_id)
        except NotFound:
            self.logger.info("Container already gone", container_id=container_id)
            return
        except DockerException as e:
            self.logger.warning(
                "Failed to look up container", container_id=container_id, error=str(e)
            )
            return
        self._stop_container(container, container_id)

    def _stop_container(self, container: Container, container_id: str) -> None:
        try:
            container.stop(timeout=self.config.container.stop_timeout)
            self.logger.info("Stopped container", container_id=container_id)
            return
        except NotFound:
            self.logger.info("Container already gone", container_id=container_id)
            return
        except DockerException as e:
            self.logger.warning(
                "Failed to stop container, killing it",
                container_id=container_id,
                error=str(e),
            )

        try:
            container.kill()
            self.logger.info("Killed container", container_id=container_id)
        except NotFound:
            self.logger.info("Container already gone", container_id=container_id)
        except DockerException as e:
            self.logger.warning(
                "Failed to kill container", container_id=container_id, error=str(e)
            )

    def sweep_all(self) -> int:
        """Stop every live container started from the test image, in parallel.

        Returns:
            Number of containers the sweep found
        """
        try:
            containers = self.docker.containers.list(filters={"ancestor": self.image_tag})
        except DockerException as e:
            self.logger.warning("Failed to list test containers", error=str(e))
            return 0

        if not containers:
            self.logger.info("No test containers to clean up")
            return 0

        self.logger.info("Cleaning up test containers", count=len(containers))
        workers = min(len(containers), SWEEP_MAX_WORKERS)
        with concurrent.futures.ThreadPoolExecutor(max_workers=workers) as executor:
            futures = [
                executor.submit(self._stop_container, container, container.id[:SHORT_ID_LENGTH])
                for container in containers
            ]
            for future in futures:
                future.result()
        return len(containers)
