"""
End-to-end tests for .NET service generation.
"""

from unittest.mock import MagicMock, patch

import pytest
import yaml

from lowcode_server.codegen.context import DsgContext, DsgResourceData
from lowcode_server.codegen.events import EventNames
from lowcode_server.codegen.generator import create_dotnet_service
from lowcode_server.codegen.module_map import Module
from lowcode_server.codegen.plugins import PluginEventHooks
from lowcode_server.codegen.server.project_files import (
    apply_update_properties,
    default_env_variables,
)

BASE = "apps/sample-service"
SRC = f"{BASE}/src"
APIS = f"{SRC}/APIs"


async def generate(data_dict, registry):
    data = DsgResourceData.model_validate(data_dict)
    result = await create_dotnet_service(data, registry)
    return {module.path: module.code for module in result.modules}, result


class TestServerFiles:
    @pytest.mark.asyncio
    async def test_expected_files(self, resource_data_dict, registry):
        files, _ = await generate(resource_data_dict, registry)

        expected = {
            f"{BASE}/Dockerfile",
            f"{BASE}/.dockerignore",
            f"{BASE}/README.md",
            f"{SRC}/appsettings.json",
            f"{SRC}/appsettings.Development.json",
            f"{APIS}/Common/FindManyInput.cs",
            f"{APIS}/Errors/NotFoundException.cs",
            f"{SRC}/SampleService.csproj",
            f"{BASE}/.env",
            f"{BASE}/.gitignore",
            f"{BASE}/docker-compose.yml",
            f"{BASE}/docker-compose.dev.yml",
            f"{SRC}/Infrastructure/SwaggerGenOptionsExtensions.cs",
            f"{SRC}/Program.cs",
            f"{SRC}/Infrastructure/SampleServiceDbContext.cs",
            f"{SRC}/Infrastructure/Models/CustomerDbModel.cs",
            f"{SRC}/Infrastructure/Models/OrderDbModel.cs",
            f"{SRC}/Infrastructure/SeedDevelopmentData.cs",
            f"{APIS}/Dtos/Customer.cs",
            f"{APIS}/Dtos/CustomerCreateInput.cs",
            f"{APIS}/Dtos/CustomerUpdateInput.cs",
            f"{APIS}/Dtos/CustomerWhereInput.cs",
            f"{APIS}/Dtos/CustomerWhereUniqueInput.cs",
            f"{APIS}/Dtos/CustomerFindManyArgs.cs",
            f"{APIS}/ICustomersService.cs",
            f"{APIS}/Base/CustomersServiceBase.cs",
            f"{APIS}/CustomersService.cs",
            f"{APIS}/Base/CustomersControllerBase.cs",
            f"{APIS}/CustomersController.cs",
            f"{APIS}/Base/CustomersControllerBase.Orders.cs",
            f"{APIS}/Extensions/CustomersExtensions.cs",
            f"{APIS}/IOrdersService.cs",
            f"{APIS}/OrdersController.cs",
        }
        assert expected <= set(files)

        # auth, broker, grpc and secrets files are conditional
        assert not any("/Infrastructure/Auth/" in path for path in files)
        assert not any("/Brokers/" in path for path in files)
        assert not any("/Grpc/" in path for path in files)
        assert f"{SRC}/Infrastructure/SecretsNameKey.cs" not in files
        # single lookups have no relation endpoints
        assert f"{APIS}/Base/OrdersControllerBase.Customer.cs" not in files

    @pytest.mark.asyncio
    async def test_static_files_use_service_namespace(
        self, resource_data_dict, registry
    ):
        files, _ = await generate(resource_data_dict, registry)

        code = files[f"{APIS}/Common/FindManyInput.cs"]
        assert "namespace SampleService.APIs.Common;" in code
        assert "ServiceName" not in code

    @pytest.mark.asyncio
    async def test_static_files_can_be_disabled(self, resource_data_dict, registry):
        with patch(
            "lowcode_server.codegen.server.server.config.get_codegen_config",
            return_value={"plugins": [], "static_files": False},
        ):
            files, _ = await generate(resource_data_dict, registry)

        assert f"{BASE}/Dockerfile" not in files
        assert f"{SRC}/Program.cs" in files

    @pytest.mark.asyncio
    async def test_server_path_setting(self, resource_data_dict, registry):
        resource_data_dict["resourceInfo"]["settings"]["serverPath"] = "/services/api/"

        files, _ = await generate(resource_data_dict, registry)

        assert "services/api/src/SampleService.csproj" in files
        assert not any(path.startswith("apps/") for path in files)

    @pytest.mark.asyncio
    async def test_result_to_dict(self, resource_data_dict, registry):
        _, result = await generate(resource_data_dict, registry)

        output = result.to_dict()

        assert {"path", "code"} == set(output["files"][0])
        messages = [log["message"] for log in output["logs"]]
        assert messages[0] == "Generating service Sample Service"
        assert messages[-1] == "Service generation completed"


class TestEntityFiles:
    @pytest.mark.asyncio
    async def test_controller_endpoints(self, resource_data_dict, registry):
        files, _ = await generate(resource_data_dict, registry)

        code = files[f"{APIS}/Base/CustomersControllerBase.cs"]
        assert "[HttpPost()]" in code
        assert "CreateCustomer([FromBody()] CustomerCreateInput input)" in code
        assert '[HttpGet("{id}")]' in code
        assert "Customers([FromQuery()] CustomerFindManyArgs findManyArgs)" in code
        assert '[HttpPatch("{id}")]' in code
        assert "UpdateCustomer(" in code
        assert '[HttpDelete("{id}")]' in code
        assert "DeleteCustomer(" in code
        assert "Meta" not in code
        assert "Authorize" not in code
        # relation endpoints live in the partial class file
        assert "ConnectOrders" not in code

    @pytest.mark.asyncio
    async def test_to_many_relation_endpoints(self, resource_data_dict, registry):
        files, _ = await generate(resource_data_dict, registry)

        code = files[f"{APIS}/Base/CustomersControllerBase.Orders.cs"]
        assert "public abstract partial class CustomersControllerBase" in code
        assert '[HttpPost("{id}/orders")]' in code
        assert "ConnectOrders(" in code
        assert '[HttpDelete("{id}/orders")]' in code
        assert "DisconnectOrders(" in code
        assert "FindOrders(" in code
        assert "UpdateOrders(" in code

    @pytest.mark.asyncio
    async def test_service_interface(self, resource_data_dict, registry):
        files, _ = await generate(resource_data_dict, registry)

        code = files[f"{APIS}/ICustomersService.cs"]
        assert "public interface ICustomersService" in code
        assert "public Task<Customer> CreateCustomer(CustomerCreateInput input);" in code
        assert "public Task DeleteCustomer(CustomerWhereUniqueInput uniqueId);" in code
        assert "ConnectOrders(" in code

    @pytest.mark.asyncio
    async def test_disabled_actions_are_omitted(self, resource_data_dict, registry):
        resource_data_dict["moduleContainers"] = [
            {"id": "c1", "name": "Customer", "entityId": "customer-id"}
        ]
        resource_data_dict["moduleActions"] = [
            {
                "id": "a1",
                "name": "createCustomer",
                "actionType": "Create",
                "restVerb": "Post",
                "path": "/",
                "parentBlockId": "c1",
                "enabled": False,
            },
            {
                "id": "a2",
                "name": "customer",
                "actionType": "Read",
                "restVerb": "Get",
                "path": "/:id",
                "parentBlockId": "c1",
            },
            {
                "id": "a3",
                "name": "promoteCustomer",
                "actionType": "Custom",
                "restVerb": "Post",
                "path": "/:id/promote",
                "parentBlockId": "c1",
            },
        ]

        files, _ = await generate(resource_data_dict, registry)

        controller = files[f"{APIS}/Base/CustomersControllerBase.cs"]
        interface = files[f"{APIS}/ICustomersService.cs"]
        assert "CreateCustomer" not in controller
        assert "CreateCustomer" not in interface
        assert "Customer([FromRoute()] CustomerWhereUniqueInput uniqueId)" in controller
        assert '[HttpPost("{id}/promote")]' in controller
        assert "PromoteCustomer(" in interface
        # no relation actions in the container, so no partial class file
        assert f"{APIS}/Base/CustomersControllerBase.Orders.cs" not in files

    @pytest.mark.asyncio
    async def test_rest_api_can_be_disabled(self, resource_data_dict, registry):
        resource_data_dict["resourceInfo"]["settings"]["generateRestApi"] = False

        files, _ = await generate(resource_data_dict, registry)

        assert not any(path.endswith("Controller.cs") for path in files)
        assert f"{APIS}/Base/CustomersServiceBase.cs" in files

    @pytest.mark.asyncio
    async def test_grpc_controllers(self, resource_data_dict, registry):
        resource_data_dict["resourceInfo"]["settings"]["generateGrpc"] = True

        files, _ = await generate(resource_data_dict, registry)

        assert f"{SRC}/Grpc/CustomersGrpcControllerBase.cs" in files
        assert f"{SRC}/Grpc/CustomersGrpcController.cs" in files
        assert "Grpc.AspNetCore" in files[f"{SRC}/SampleService.csproj"]


class TestDtos:
    @pytest.mark.asyncio
    async def test_dto_properties(self, resource_data_dict, registry):
        files, _ = await generate(resource_data_dict, registry)

        create_input = files[f"{APIS}/Dtos/CustomerCreateInput.cs"]
        assert "public string? Id { get; set; }" in create_input
        assert "[Required()]\n    public string Name { get; set; }" in create_input
        assert "CreatedAt" not in create_input

        where_input = files[f"{APIS}/Dtos/CustomerWhereInput.cs"]
        assert "public string? Name { get; set; }" in where_input
        assert "Orders" not in where_input

        dto = files[f"{APIS}/Dtos/Customer.cs"]
        assert "public List<OrderWhereUniqueInput>? Orders { get; set; }" in dto

        find_many = files[f"{APIS}/Dtos/CustomerFindManyArgs.cs"]
        assert (
            "public class CustomerFindManyArgs : "
            "FindManyInput<Customer, CustomerWhereInput> { }"
        ) in find_many

    @pytest.mark.asyncio
    async def test_seed_imports_dto_namespaces(self, resource_data_dict, registry):
        files, _ = await generate(resource_data_dict, registry)

        seed = files[f"{SRC}/Infrastructure/SeedDevelopmentData.cs"]
        assert "using SampleService.APIs.Dtos;" in seed
        assert "await Task.CompletedTask;" in seed


class TestAuth:
    @pytest.mark.asyncio
    async def test_auth_entity_files(self, resource_data_dict, user_data, registry):
        resource_data_dict["entities"].append(user_data)
        resource_data_dict["resourceInfo"]["settings"]["authEntityName"] = "User"

        files, _ = await generate(resource_data_dict, registry)

        assert f"{SRC}/Infrastructure/Auth/AuthenticationExtensions.cs" in files
        roles = files[f"{SRC}/Infrastructure/Auth/RolesManager.cs"]
        assert 'public const string Admin = "admin";' in roles

        compose = yaml.safe_load(files[f"{BASE}/docker-compose.yml"])
        environment = compose["services"]["server"]["environment"]
        assert environment["Jwt__SecretKey"] == "${JWT_SECRET_KEY}"
        assert "JWT_SECRET_KEY=Change_ME!!!" in files[f"{BASE}/.env"]
        assert "JwtBearer" in files[f"{SRC}/SampleService.csproj"]
        assert "app.UseAuthentication();" in files[f"{SRC}/Program.cs"]

        controller = files[f"{APIS}/Base/CustomersControllerBase.cs"]
        assert '[Authorize(Roles = "admin")]' in controller

        seed = files[f"{SRC}/Infrastructure/SeedDevelopmentData.cs"]
        assert "context.Users.AnyAsync(x => x.Username == username)" in seed
        assert "Password = configuration" in seed

    @pytest.mark.asyncio
    async def test_unknown_auth_entity_is_ignored(self, resource_data_dict, registry):
        resource_data_dict["resourceInfo"]["settings"]["authEntityName"] = "Nobody"

        files, _ = await generate(resource_data_dict, registry)

        assert not any("/Infrastructure/Auth/" in path for path in files)


class TestMessageBroker:
    @pytest.fixture
    def broker_data(self, resource_data_dict):
        resource_data_dict["otherResources"] = [
            {
                "id": "broker-1",
                "name": "Kafka",
                "resourceType": "MessageBroker",
                "topics": [
                    {"id": "t1", "name": "order.created"},
                    {"id": "t2", "name": "customer.updated"},
                ],
            }
        ]
        resource_data_dict["serviceTopics"] = [
            {
                "messageBrokerId": "broker-1",
                "enabled": True,
                "patterns": [
                    {"topicId": "t1", "type": "Send"},
                    {"topicId": "t2", "type": "Receive"},
                ],
            }
        ]
        return resource_data_dict

    @pytest.mark.asyncio
    async def test_broker_files(self, broker_data, registry):
        files, _ = await generate(broker_data, registry)

        broker_dir = f"{SRC}/Brokers/Kafka"
        topics = files[f"{broker_dir}/Topics.cs"]
        assert 'public const string OrderCreated = "order.created";' in topics
        service_base = files[f"{broker_dir}/KafkaServiceBase.cs"]
        assert "SendOrderCreated(" in service_base
        assert "OnCustomerUpdated(" in service_base
        assert f"{broker_dir}/KafkaOptionsFactory.cs" in files
        assert f"{broker_dir}/KafkaService.cs" in files
        assert "KAFKA_BROKERS=localhost:9092" in files[f"{BASE}/.env"]
        assert "Confluent.Kafka" in files[f"{SRC}/SampleService.csproj"]

    @pytest.mark.asyncio
    async def test_disabled_connection(self, broker_data, registry):
        broker_data["serviceTopics"][0]["enabled"] = False

        files, _ = await generate(broker_data, registry)

        assert not any("/Brokers/" in path for path in files)


class TestPlugins:
    @pytest.mark.asyncio
    async def test_installed_plugins_take_part(self, resource_data_dict, registry):
        def before_dot_env(context, params):
            params.env_variables.append({"PLUGIN_VAR": "on"})
            return params

        def after_server(context, params, modules):
            modules.set(Module(f"{BASE}/PLUGIN.md", "generated by plugin"))
            return modules

        plugin = MagicMock()
        plugin.register.return_value = {
            EventNames.CREATE_SERVER_DOT_ENV: PluginEventHooks(before=before_dot_env),
            EventNames.CREATE_SERVER: PluginEventHooks(after=after_server),
        }
        registry.register_plugin("env-plugin", plugin)
        resource_data_dict["pluginInstallations"] = [{"pluginId": "env-plugin"}]

        files, _ = await generate(resource_data_dict, registry)

        assert "PLUGIN_VAR=on" in files[f"{BASE}/.env"]
        assert files[f"{BASE}/PLUGIN.md"] == "generated by plugin"

    @pytest.mark.asyncio
    async def test_hooks_read_installation_settings(self, resource_data_dict, registry):
        def before_dot_env(context, params):
            region = context.get_plugin_settings("cloud")["region"]
            params.env_variables.append({"CLOUD_REGION": region})
            return params

        plugin = MagicMock()
        plugin.register.return_value = {
            EventNames.CREATE_SERVER_DOT_ENV: PluginEventHooks(before=before_dot_env)
        }
        registry.register_plugin("cloud", plugin)
        resource_data_dict["pluginInstallations"] = [
            {"pluginId": "cloud", "settings": {"region": "eu-west-1"}}
        ]

        files, _ = await generate(resource_data_dict, registry)

        assert "CLOUD_REGION=eu-west-1" in files[f"{BASE}/.env"]

    @pytest.mark.asyncio
    async def test_registered_but_not_installed(self, resource_data_dict, registry):
        plugin = MagicMock()
        plugin.register.return_value = {
            EventNames.CREATE_SERVER_DOT_ENV: PluginEventHooks(
                before=MagicMock(side_effect=AssertionError("must not run"))
            )
        }
        registry.register_plugin("idle", plugin)

        files, _ = await generate(resource_data_dict, registry)

        assert f"{BASE}/.env" in files

    @pytest.mark.asyncio
    async def test_missing_plugin_is_logged(self, resource_data_dict, registry):
        resource_data_dict["pluginInstallations"] = [{"pluginId": "missing"}]

        _, result = await generate(resource_data_dict, registry)

        warnings = [e.message for e in result.logger.entries if e.level == "warning"]
        assert "Plugin missing is installed but not available" in warnings


class TestProjectFiles:
    def test_apply_update_properties(self):
        document = {"services": {"server": {"environment": {"A": "1"}}}}

        apply_update_properties(
            document,
            [
                {"path": "services.server.environment.B", "value": "2"},
                {"path": "services.server.environment.A", "value": None},
                {"path": "volumes.data", "value": {}},
            ],
        )

        assert document == {
            "services": {"server": {"environment": {"B": "2"}}},
            "volumes": {"data": {}},
        }

    def test_default_env_variables(self, context):
        variables = default_env_variables(context)

        assert {"DB_NAME": "sample-service"} in variables
        assert not any("JWT_SECRET_KEY" in v for v in variables)

    def test_context_directories(self, resource_data, registry):
        context = DsgContext(resource_data, registry)

        assert context.resource_name == "SampleService"
        assert context.server_directories.apis_directory == APIS
        assert context.auth_entity is None
        assert context.message_broker is None

    def test_plugin_settings_of_missing_installation(self, context):
        assert context.get_plugin_settings("not-installed") == {}
