"""``security setup`` command and the providers able to install security."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional

from genshell.domain import option_contexts
from genshell.domain.command import Command, CommandBuilder
from genshell.domain.context import ShellContext, effective_focused_module
from genshell.domain.model import ModuleRef
from genshell.plugins import AddonContext, AddonRegistrar
from genshell.ports.project_model import ProjectModel

logger = logging.getLogger(__name__)

MVC_FEATURE = "mvc"
DEFAULT_PROVIDER = "DEFAULT"
ENABLE_WEB_SECURITY = "org.springframework.security.config.annotation.web.configuration.EnableWebSecurity"


@dataclass(frozen=True)
class Dependency:
    group_id: str
    artifact_id: str
    version: Optional[str] = None

    @property
    def coordinates(self) -> str:
        base = f"{self.group_id}:{self.artifact_id}"
        return f"{base}:{self.version}" if self.version else base

    def matches(self, coordinates: str) -> bool:
        """Compare ignoring any version part of ``coordinates``."""
        parts = coordinates.split(":")
        return parts[:2] == [self.group_id, self.artifact_id]


SPRING_SECURITY_STARTER = Dependency("org.springframework.boot", "spring-boot-starter-security")
THYMELEAF_SECURITY_EXTRAS = Dependency("org.thymeleaf.extras", "thymeleaf-extras-springsecurity4")


class SecurityProvider(ABC):
    """Knows how to bring one flavour of security into a project module."""

    name: str

    @abstractmethod
    def is_installation_available(self, project: ProjectModel) -> bool:
        ...

    @abstractmethod
    def is_installed_in_module(self, project: ProjectModel, module: str) -> bool:
        ...

    @abstractmethod
    def install_plan(self, project: ProjectModel, module: str) -> List[Dict[str, Any]]:
        ...


class DefaultSecurityProvider(SecurityProvider):
    """Spring Boot's default security configuration."""

    name = DEFAULT_PROVIDER

    def is_installation_available(self, project: ProjectModel) -> bool:
        return (
            project.is_focused_project_available()
            and project.is_feature_installed(MVC_FEATURE)
            and not project.is_feature_installed(self.name)
        )

    def is_installed_in_module(self, project: ProjectModel, module: str) -> bool:
        return any(SPRING_SECURITY_STARTER.matches(item) for item in project.module_dependencies(module))

    def install_plan(self, project: ProjectModel, module: str) -> List[Dict[str, Any]]:
        configuration = f"{project.top_level_package(module)}.config.SecurityConfiguration"
        return [
            {"action": "add_dependency", "module": module, "dependency": SPRING_SECURITY_STARTER.coordinates},
            {
                "action": "add_application_property",
                "module": module,
                "key": "security.enable-csrf",
                "value": "true",
                "profile": "",
            },
            {
                "action": "add_application_property",
                "module": module,
                "key": "security.enable-csrf",
                "value": "true",
                "profile": "dev",
            },
            {
                "action": "add_build_property",
                "module": module,
                "key": "thymeleaf-extras-springsecurity4.version",
                "value": "3.0.0.RELEASE",
            },
            {"action": "add_dependency", "module": module, "dependency": THYMELEAF_SECURITY_EXTRAS.coordinates},
            {
                "action": "create_type",
                "module": module,
                "type": configuration,
                "annotations": [ENABLE_WEB_SECURITY],
            },
        ]


class SecurityAddon:
    name = "security"

    def __init__(self, providers: Iterable[SecurityProvider] | None = None) -> None:
        self._providers: Dict[str, SecurityProvider] = {}
        for provider in providers if providers is not None else (DefaultSecurityProvider(),):
            if provider.name in self._providers:
                raise ValueError(f"Security provider {provider.name} already registered")
            self._providers[provider.name] = provider

    @property
    def providers(self) -> Dict[str, SecurityProvider]:
        return dict(self._providers)

    def register(self, registrar: AddonRegistrar, context: AddonContext) -> None:
        registrar.add_command(build_security_command(context, self._providers))


def build_security_command(context: AddonContext, providers: Dict[str, SecurityProvider]) -> Command:
    project = context.project
    sticky = context.sticky

    def available() -> bool:
        return any(provider.is_installation_available(project) for provider in providers.values())

    def multimodule(ctx: ShellContext) -> bool:
        return ctx.project.is_multimodule()

    def provider_names(ctx: ShellContext) -> List[str]:
        return list(providers)

    def handle(arguments) -> Dict[str, Any]:
        provider = providers[arguments["provider"]]
        module_ref: Optional[ModuleRef] = arguments.get("module")
        module = module_ref.name if module_ref is not None else effective_focused_module(project, sticky)
        if not provider.is_installation_available(project):
            raise RuntimeError(f"Security provider {provider.name} cannot be installed in this project")
        if provider.is_installed_in_module(project, module):
            logger.info("Security provider %s already installed in module '%s'", provider.name, module)
            return {"provider": provider.name, "module": module, "steps": []}
        logger.info("Installing security provider %s in module '%s'", provider.name, module)
        return {"provider": provider.name, "module": module, "steps": provider.install_plan(project, module)}

    return (
        CommandBuilder("security setup", help="Installs Spring Security in your project.")
        .option(
            "provider",
            str,
            help="The security provider to install.",
            unspecified_default=DEFAULT_PROVIDER,
        )
        .option(
            "module",
            ModuleRef,
            help="The application module where security is installed (mandatory on multi-module projects).",
            mandatory=True,
            option_context=option_contexts.UPDATE,
        )
        .available_when(available)
        .visible_when(["module"], multimodule, help="--module is only available on multi-module projects")
        .mandatory_when(["module"], multimodule)
        .autocomplete("provider", provider_names, help="--provider must be one of the installed security providers.")
        .handler(handle)
        .build()
    )


__all__ = [
    "DEFAULT_PROVIDER",
    "DefaultSecurityProvider",
    "Dependency",
    "SecurityAddon",
    "SecurityProvider",
    "build_security_command",
]
