"""
Static scaffold files copied into every generated service.
"""

from lowcode_server.codegen.events import EventNames, LoadStaticFilesParams
from lowcode_server.codegen.module_map import Module, ModuleMap
from lowcode_server.codegen.plugins import plugin_wrapper
from lowcode_server.codegen.rendering import STATIC_DIR

# Replaced by the service namespace in file names and contents
SERVICE_NAME_PLACEHOLDER = "ServiceName"


async def create_static_files(context) -> ModuleMap:
    params = LoadStaticFilesParams(
        source="server", base_path=context.server_directories.base_directory
    )
    return await plugin_wrapper(
        load_static_files, EventNames.LOAD_STATIC_FILES, context, params
    )


def load_static_files(context, params: LoadStaticFilesParams) -> ModuleMap:
    modules = ModuleMap(context.logger)
    source_dir = STATIC_DIR / params.source
    if not source_dir.is_dir():
        context.logger.warning(
            f"Static files directory {params.source} does not exist",
            {"source": params.source},
        )
        return modules

    for path in sorted(source_dir.rglob("*")):
        if not path.is_file():
            continue
        relative = path.relative_to(source_dir).as_posix()
        relative = relative.replace(SERVICE_NAME_PLACEHOLDER, context.resource_name)
        code = path.read_text(encoding="utf-8").replace(
            SERVICE_NAME_PLACEHOLDER, context.resource_name
        )
        modules.set(Module(f"{params.base_path}/{relative}", code))
    return modules
