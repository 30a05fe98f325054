"""Kubernetes service discovery.

Uses the kubernetes Python client to read a Service and return its cluster
address. Only used to find the Tekton event listener the values repo hook
points at.
"""

import asyncio

from kubernetes import client, config
from kubernetes.client.rest import ApiException
from urllib3.exceptions import HTTPError as TransportError

from giteaseed.logging_config import get_logger

logger = get_logger(__name__)

_core_v1: client.CoreV1Api | None = None


class ServiceDiscoveryError(Exception):
    """A service address could not be resolved."""


def init_k8s() -> None:
    """Initialize the Kubernetes client.

    Uses in-cluster config when running in K8s, falls back to kubeconfig for local dev.
    """
    global _core_v1  # noqa: PLW0603

    try:
        config.load_incluster_config()
        logger.info("Loaded in-cluster K8s config")
    except config.ConfigException:
        try:
            config.load_kube_config()
            logger.info("Loaded kubeconfig")
        except config.ConfigException as e:
            raise ServiceDiscoveryError(f"Failed to load K8s config: {e}") from e

    _core_v1 = client.CoreV1Api()


def _get_core_api() -> client.CoreV1Api:
    if _core_v1 is None:
        init_k8s()
    assert _core_v1 is not None
    return _core_v1


async def get_service_address(name: str, namespace: str) -> tuple[str, int | None]:
    """Return ``(cluster_ip, first_port)`` of a Service.

    Raises ServiceDiscoveryError if the service cannot be read or has no
    cluster IP (headless or pending).
    """
    core_api = _get_core_api()

    try:
        loop = asyncio.get_running_loop()
        service = await loop.run_in_executor(
            None,
            lambda: core_api.read_namespaced_service(name=name, namespace=namespace),
        )
    except ApiException as e:
        raise ServiceDiscoveryError(
            f"Reading service {namespace}/{name} failed: {e.status} {e.reason}"
        ) from e
    except TransportError as e:
        raise ServiceDiscoveryError(f"Reading service {namespace}/{name} failed: {e}") from e

    spec = service.spec
    cluster_ip = spec.cluster_ip if spec else None
    if not cluster_ip or cluster_ip == "None":
        raise ServiceDiscoveryError(f"Service {namespace}/{name} has no cluster IP")

    port = spec.ports[0].port if spec.ports else None
    logger.debug("Resolved service", service=f"{namespace}/{name}", cluster_ip=cluster_ip, port=port)
    return cluster_ip, port
