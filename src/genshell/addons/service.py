"""``service`` command: service interfaces and implementations for entities."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from genshell.app.converters import TypeRefConverter, abbreviate_type
from genshell.domain import option_contexts
from genshell.domain.command import Command, CommandBuilder
from genshell.domain.context import ShellContext, effective_focused_module
from genshell.domain.diagnostics import ConversionError
from genshell.domain.model import TOP_LEVEL_PACKAGE_SYMBOL, PackageRef, TypeRef, qualify
from genshell.plugins import AddonContext, AddonRegistrar

logger = logging.getLogger(__name__)

ENTITY_TAG = "jpa-entity"
REPOSITORY_TAG = "repository"
JPA_FEATURE = "jpa"
API_MODULE = "service-api"
IMPL_MODULE = "service-impl"


class ServiceAddon:
    name = "service"

    def register(self, registrar: AddonRegistrar, context: AddonContext) -> None:
        registrar.add_command(build_service_command(context))


def build_service_command(context: AddonContext) -> Command:
    project = context.project
    sticky = context.sticky
    types = TypeRefConverter(project, sticky)

    def focused() -> str:
        return effective_focused_module(project, sticky)

    def entity_visible(ctx: ShellContext) -> bool:
        return not ctx.has_parameter("all")

    def all_visible(ctx: ShellContext) -> bool:
        return ctx.has_parameter("all") or not ctx.has_parameter("entity")

    def entity_details_visible(ctx: ShellContext) -> bool:
        return ctx.has_value("entity") and not ctx.has_parameter("all")

    def packages_visible(ctx: ShellContext) -> bool:
        return ctx.has_parameter("all")

    def required_on_multimodule(ctx: ShellContext) -> bool:
        return entity_details_visible(ctx) and ctx.project.is_multimodule()

    def entities(ctx: ShellContext) -> List[str]:
        current = ctx.get_parameter("entity", "") or ""
        return [
            abbreviate_type(details.ref, current, ctx.project, ctx.focused_module)
            for details in ctx.project.find_types(ENTITY_TAG)
        ]

    def repositories(ctx: ShellContext) -> List[str]:
        entity_text = ctx.get_parameter("entity", "") or ""
        if not entity_text.strip():
            return []
        try:
            entity = types.convert_from_text(entity_text, TypeRef, option_contexts.PROJECT)
        except ConversionError:
            return []
        current = ctx.get_parameter("repository", "") or ""
        found = [
            abbreviate_type(details.ref, current, ctx.project, ctx.focused_module)
            for details in ctx.project.find_types(REPOSITORY_TAG)
            if details.attributes.get("entity") == entity.name
        ]
        if not found:
            logger.warning(
                "Entity '%s' does not have any repository generated. "
                "Use 'repository' commands to generate a valid repository and then try again.",
                entity_text,
            )
            return [""]
        return found

    def package_stems(leaf: str):
        def stems(ctx: ShellContext) -> List[str]:
            values: List[str] = []
            current = ctx.focused_module
            for module in ctx.project.module_names():
                if module and module != current:
                    values.append(qualify(module, TOP_LEVEL_PACKAGE_SYMBOL + "."))
                elif not ctx.project.is_multimodule():
                    values.append(f"{TOP_LEVEL_PACKAGE_SYMBOL}.service.{leaf}.")
            values.append(TOP_LEVEL_PACKAGE_SYMBOL + ".")
            return values

        return stems

    def default_package(module_name: str, suffix: str, option: str) -> PackageRef:
        if project.is_multimodule():
            if module_name not in project.module_names():
                raise LookupError(
                    f"Couldn't find in project a default service.{suffix} package. "
                    f"Please, use '{option}' option to specify it."
                )
            return PackageRef(project.top_level_package(module_name), module_name)
        module = focused()
        return PackageRef(f"{project.top_level_package(module)}.service.{suffix}", module)

    def default_type(entity: TypeRef, suffix: str, simple_name: str) -> TypeRef:
        module = entity.module or focused()
        top = project.top_level_package(module)
        return TypeRef(f"{top}.service.{suffix}.{simple_name}", module)

    def handle(arguments) -> Dict[str, Any]:
        if arguments.get("all"):
            api_package = arguments.get("apiPackage") or default_package(API_MODULE, "api", "apiPackage")
            impl_package = arguments.get("implPackage") or default_package(IMPL_MODULE, "impl", "implPackage")
            logger.info("Generating services for every entity into %s and %s", api_package, impl_package)
            return {
                "action": "add_all_services",
                "api_package": api_package.to_text(),
                "impl_package": impl_package.to_text(),
            }
        entity: Optional[TypeRef] = arguments.get("entity")
        if entity is None:
            return {"action": "none"}
        interface = arguments.get("interface") or default_type(entity, "api", f"{entity.simple_name}Service")
        implementation = arguments.get("class") or default_type(entity, "impl", f"{entity.simple_name}ServiceImpl")
        repository: Optional[TypeRef] = arguments.get("repository")
        logger.info("Generating service %s for entity %s", interface, entity)
        return {
            "action": "add_service",
            "entity": entity.to_text(),
            "repository": repository.to_text() if repository is not None else None,
            "interface": interface.to_text(),
            "class": implementation.to_text(),
        }

    return (
        CommandBuilder("service", help="Creates new service interface and its implementation.")
        .option(
            "all",
            bool,
            help="Generate services for every entity of the project. Not available once --entity is given.",
            specified_default="true",
            unspecified_default="false",
        )
        .option(
            "entity",
            TypeRef,
            help="The domain entity this service should expose. Not available once --all is given.",
            option_context=option_contexts.PROJECT,
        )
        .option(
            "repository",
            TypeRef,
            help="The repository this service should expose (mandatory on multi-module projects).",
            mandatory=True,
            option_context=option_contexts.PROJECT,
        )
        .option(
            "interface",
            TypeRef,
            help="The service interface to generate (mandatory on multi-module projects).",
            mandatory=True,
        )
        .option("class", TypeRef, help="The service implementation to generate.")
        .option("apiPackage", PackageRef, help="Package of the service interfaces. Requires --all.")
        .option("implPackage", PackageRef, help="Package of the service implementations. Requires --all.")
        .available_when(lambda: project.is_feature_installed(JPA_FEATURE))
        .visible_when(
            ["repository", "interface", "class"],
            entity_details_visible,
            help="--repository, --interface and --class are not available if you don't specify --entity",
        )
        .visible_when(
            ["apiPackage", "implPackage"],
            packages_visible,
            help="--apiPackage and --implPackage are not available if --all hasn't been specified before",
        )
        .visible_when(["all"], all_visible, help="--all is not available once --entity has been specified")
        .visible_when(["entity"], entity_visible, help="--entity is not available once --all has been specified")
        .mandatory_when(["repository", "interface"], required_on_multimodule)
        .autocomplete("entity", entities, help="--entity option should be an entity.")
        .autocomplete(
            "repository",
            repositories,
            help=(
                "--repository must be the repository associated to the entity given in --entity. "
                "Please, write a valid value using autocomplete (TAB)"
            ),
        )
        .autocomplete("interface", package_stems("api"), help="--interface should be a new interface.", validate=False)
        .autocomplete("class", package_stems("impl"), help="--class should be a new class.", validate=False)
        .handler(handle)
        .build()
    )


__all__ = ["ServiceAddon", "build_service_command"]
