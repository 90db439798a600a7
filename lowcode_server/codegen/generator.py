"""
Entry point of .NET service generation.
"""

import time
from dataclasses import dataclass
from typing import Optional

from lowcode_server.codegen.build_logger import BuildLogger
from lowcode_server.codegen.context import DsgContext, DsgResourceData
from lowcode_server.codegen.module_map import ModuleMap
from lowcode_server.codegen.plugins import PluginRegistry
from lowcode_server.codegen.server.server import create_server
from lowcode_server.utils.verbosity_logger import get_logger

logger = get_logger("lowcode_server.codegen.generator")


@dataclass
class GenerationResult:
    modules: ModuleMap
    logger: BuildLogger

    def to_dict(self):
        return {
            "files": [{"path": m.path, "code": m.code} for m in self.modules],
            "logs": self.logger.to_list(),
        }


async def create_dotnet_service(
    data: DsgResourceData,
    registry: PluginRegistry,
    build_logger: Optional[BuildLogger] = None,
) -> GenerationResult:
    """
    Generate the code of a .NET service resource.

    Args:
        data: The resource to generate
        registry: Plugins available to the build; only those installed on the
            resource take part
        build_logger: Collects the build log, a new one is created if omitted

    Returns:
        The generated modules and the build log

    Raises:
        PluginError: when an installed plugin fails
    """
    context = DsgContext(data, registry, build_logger)
    started = time.monotonic()
    context.logger.info(f"Generating service {data.resource_info.name}")

    for installation in context.plugin_installations:
        if installation.enabled and installation.plugin_id not in registry:
            context.logger.warning(
                f"Plugin {installation.plugin_id} is installed but not available",
                {"pluginId": installation.plugin_id},
            )

    modules = await create_server(context)
    context.modules.merge(modules)

    logger.info(
        "Generated %d modules for resource %s in %.2fs",
        len(context.modules),
        data.resource_info.id,
        time.monotonic() - started,
    )
    context.logger.info("Service generation completed")
    return GenerationResult(modules=context.modules, logger=context.logger)
