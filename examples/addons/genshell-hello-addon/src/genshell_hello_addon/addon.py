from __future__ import annotations

from genshell.domain.command import CommandBuilder
from genshell.domain.context import effective_focused_module
from genshell.plugins import AddonContext, AddonRegistrar


class HelloAddon:
    name = "hello"

    def register(self, registrar: AddonRegistrar, context: AddonContext) -> None:
        def handler(arguments) -> str:
            module = effective_focused_module(context.project, context.sticky) or "~"
            return f"Hello, {arguments['name']}! genshell {context.settings.cli_version}, focused on {module}"

        registrar.add_command(
            CommandBuilder("hello", help="Say hello from an add-on")
            .option("name", str, help="Name to greet", unspecified_default="Operator")
            .handler(handler)
            .build()
        )
