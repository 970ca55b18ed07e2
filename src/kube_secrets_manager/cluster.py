"""Kubernetes cluster connection utilities.

This module provides the Cluster class which resolves the kube context to
work with and hands out the API client the secrets manager lists secrets
through.
"""

import click
import questionary
from kubernetes import client, config
from kubernetes.config.config_exception import ConfigException

from kube_secrets_manager import console
from kube_secrets_manager.exceptions import ClusterConnectionError
from kube_secrets_manager.styles import POINTER, PROMPT_STYLE, QMARK


class Cluster:
    """Connection to a Kubernetes cluster.

    Attributes:
        context: The active Kubernetes context name.
        core_v1_api: Client for the core/v1 API group.

    """

    def __init__(self, *, select_context: bool, context: str | None = None) -> None:
        """Initialize Cluster with context selection.

        Args:
            select_context: If True, prompt user to select a context.
                Must be passed as a keyword argument.
            context: Context to use instead of the current one. Ignored
                when ``select_context`` is set.

        Raises:
            ClusterConnectionError: If the kubeconfig is invalid, missing,
                or does not contain the requested context.

        """
        self.context: str = self._set_context(select_context=select_context, context=context)
        try:
            config.load_kube_config(context=self.context)
        except ConfigException as e:
            raise ClusterConnectionError(f"Failed to load context '{self.context}': {e}") from e
        self.core_v1_api: client.CoreV1Api = client.CoreV1Api()

    @staticmethod
    def _set_context(*, select_context: bool, context: str | None) -> str:
        """Resolve the Kubernetes context to use.

        Returns:
            The selected, requested or current context name.

        Raises:
            ClusterConnectionError: If kubeconfig is invalid or missing, or
                the requested context does not exist.
            click.Abort: If user cancels context selection.

        """
        try:
            contexts, current_context = config.list_kube_config_contexts()
        except ConfigException as e:
            raise ClusterConnectionError(f"Invalid or missing kubeconfig: {e}") from e

        context_names: list[str] = [ctx["name"] for ctx in contexts]
        if select_context:
            selected: str | None = questionary.select(
                "Select context to work with",
                choices=context_names,
                style=PROMPT_STYLE,
                pointer=POINTER,
                qmark=QMARK,
            ).ask()
            if selected is None:
                console.warning("Context selection cancelled.")
                raise click.Abort()
            context = selected
        elif context is not None:
            if context not in context_names:
                raise ClusterConnectionError(f"Context '{context}' not found in kubeconfig")
        else:
            context = str(current_context["name"])
        console.action(f"Working with {console.highlight(context)} cluster")
        return context

    def __repr__(self) -> str:
        """Return a detailed string representation for debugging."""
        return f"Cluster(context={self.context!r})"
