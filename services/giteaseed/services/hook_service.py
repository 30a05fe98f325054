"""Webhook reconciliation for the values repository.

The values repo gets one push hook targeting the Tekton event listener.
An existing hook is recognised by the listener path segment in its URL,
not by exact URL, since the listener's cluster IP can change between runs.
"""

from collections.abc import Awaitable, Callable

from giteaseed.gitea.client import GiteaClient
from giteaseed.gitea.models import CreateHookOption, HookConfig, HookType
from giteaseed.k8s import ServiceDiscoveryError, get_service_address
from giteaseed.logging_config import get_logger
from giteaseed.services.api_call import ErrorLog, api_call

logger = get_logger(__name__)

TEKTON_LISTENER_SEGMENT = "el-tekton-listener"
DEFAULT_LISTENER_PORT = 8080

AddressResolver = Callable[[str, str], Awaitable[tuple[str, int | None]]]


async def resolve_listener_url(
    service_name: str,
    namespace: str,
    fallback_url: str,
    resolve_address: AddressResolver = get_service_address,
) -> str:
    """Resolve the listener's hook URL once, falling back to the in-cluster DNS name."""
    try:
        cluster_ip, port = await resolve_address(service_name, namespace)
    except ServiceDiscoveryError as e:
        logger.debug("Tekton service cannot be found, using fallback", reason=str(e), url=fallback_url)
        return fallback_url

    return f"http://{cluster_ip}:{port or DEFAULT_LISTENER_PORT}/{TEKTON_LISTENER_SEGMENT}"


async def has_tekton_hook(client: GiteaClient, errors: ErrorLog, org: str, repo: str) -> bool:
    hooks = await api_call(
        errors,
        f'Getting hooks in repo "{org}/{repo}"',
        lambda: client.list_hooks(org, repo),
        400,
    )
    for hook in hooks or []:
        if TEKTON_LISTENER_SEGMENT in hook.url:
            logger.debug("Tekton hook already exists", repo=f"{org}/{repo}", hook_id=hook.id)
            return True

    logger.debug("Tekton hook needs to be created", repo=f"{org}/{repo}")
    return False


def tekton_hook_option(url: str) -> CreateHookOption:
    return CreateHookOption(
        type=HookType.GITEA,
        config=HookConfig(url=url, http_method="post", content_type="json"),
        events=("push",),
    )


async def add_hook(
    client: GiteaClient,
    errors: ErrorLog,
    org: str,
    repo: str,
    service_name: str,
    namespace: str,
    fallback_url: str,
    resolve_address: AddressResolver = get_service_address,
) -> None:
    """Install the Tekton push hook on ``org/repo`` unless one is present."""
    url = await resolve_listener_url(service_name, namespace, fallback_url, resolve_address)

    if await has_tekton_hook(client, errors, org, repo):
        return

    await api_call(
        errors,
        f'Adding hook "tekton" to repo "{org}/{repo}"',
        lambda: client.create_hook(org, repo, tekton_hook_option(url)),
        304,
    )
