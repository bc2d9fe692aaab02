import docker
from docker.client import DockerClient
from docker.errors import DockerException

from docker_logentries.core.exceptions import DockerConnectionError


def create_docker_client() -> DockerClient:
    """
    Connect to the Docker daemon configured by the environment.
    
    DOCKER_HOST, DOCKER_TLS_VERIFY and DOCKER_CERT_PATH are honoured.
    
    Raises:
        DockerConnectionError: If the daemon cannot be reached
    """
    try:
        client = docker.from_env()
        client.ping()
        return client
    except DockerException as e:
        raise DockerConnectionError(f"Failed to connect to Docker daemon: {str(e)}")
