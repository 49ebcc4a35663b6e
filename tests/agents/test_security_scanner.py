import pytest

from archlens.agents import security_scanner
from archlens.agents.security_scanner import is_mutating, is_public_env
from archlens.config import merge_config
from archlens.models import ExportInfo, RouteHandlerInfo, Severity

from helpers import graph_of, module, route


def run(*modules, config=None):
    return security_scanner.run(graph_of(*modules), config or merge_config(None))


class TestUnauthenticatedMutations:
    def test_admin_route_is_one_error_naming_entities(self):
        findings = run(route("app/api/admin/x/route.ts", models=("user", "auditLog")))
        (finding,) = findings
        assert finding.severity is Severity.ERROR
        assert finding.title == "Unprotected mutation route"
        assert finding.file_path == "app/api/admin/x/route.ts"
        assert "[user, auditLog]" in finding.message
        assert "`/api/admin/x`" in finding.message

    @pytest.mark.parametrize("path", [
        "app/api/webhook/x/route.ts",
        "app/api/cron/cleanup/route.ts",
        "app/api/auth/callback/route.ts",
        "app/api/public/signup/route.ts",
    ])
    def test_exempt_routes(self, path):
        assert run(route(path, models=("user",))) == []

    def test_exempt_list_is_configurable(self):
        config = merge_config({"security": {"auth_exempt_routes": ["internal"]}})
        assert run(route("app/api/internal/x/route.ts", models=("user",)), config=config) == []
        assert len(run(route("app/api/webhook/x/route.ts", models=("user",)), config=config)) == 1

    def test_authenticated_read_only_and_data_free_routes_pass(self):
        assert run(route("app/api/a/route.ts", models=("user",), auth=("auth()",))) == []
        assert run(route("app/api/b/route.ts", models=("user",), methods=("GET",), operation="findMany")) == []
        assert run(route("app/api/c/route.ts", models=())) == []

    def test_handler_without_method_exports_counts_when_it_writes(self):
        writes = route("pages/api/orders.ts", models=("order",), methods=(), operation="delete")
        reads = route("pages/api/users.ts", models=("user",), methods=(), operation="findMany")
        findings = run(writes, reads)
        assert [f.file_path for f in findings] == ["pages/api/orders.ts"]


def test_is_mutating():
    assert is_mutating(RouteHandlerInfo("a", "/a", methods=("PATCH",)))
    assert not is_mutating(RouteHandlerInfo("a", "/a", methods=("GET",), side_effects=("DB:create",)))
    assert is_mutating(RouteHandlerInfo("a", "/a", methods=("ALL",), side_effects=("DB:upsert",)))
    assert not is_mutating(RouteHandlerInfo("a", "/a", methods=("ALL",), side_effects=("DB:count",)))


def test_is_public_env():
    config = merge_config(None)
    assert is_public_env("NEXT_PUBLIC_API_URL", config)
    assert is_public_env("VITE_MODE", config)
    assert is_public_env("NODE_ENV", {})
    assert not is_public_env("DATABASE_URL", config)


class TestClientEnvLeaks:
    def client_component(self, imports=(), env_vars=()):
        return module(
            "src/components/Checkout.tsx",
            imports=imports,
            exports=[ExportInfo("Checkout", "default")],
            client_marked=True,
            env_vars=env_vars,
        )

    def test_direct_reference_is_error(self):
        findings = run(self.client_component(env_vars=("STRIPE_SECRET", "NEXT_PUBLIC_KEY", "NODE_ENV")))
        (finding,) = findings
        assert finding.severity is Severity.ERROR
        assert "`STRIPE_SECRET`" in finding.message

    def test_library_chain_is_warning(self):
        findings = run(
            self.client_component(imports=["../lib/payments"]),
            module("src/lib/payments.ts", imports=["./stripe"], env_vars=("NEXT_PUBLIC_STRIPE",)),
            module("src/lib/stripe.ts", env_vars=("STRIPE_SECRET",)),
        )
        (finding,) = findings
        assert finding.severity is Severity.WARNING
        assert finding.file_path == "src/components/Checkout.tsx"
        assert "`src/lib/stripe.ts`" in finding.message
        assert "`STRIPE_SECRET`" in finding.message

    def test_server_components_are_not_checked(self):
        server = module("src/components/Report.tsx", exports=[ExportInfo("Report", "default")],
                        env_vars=("DATABASE_URL",))
        assert run(server) == []


def test_dangerous_patterns_only_in_routes_and_libraries():
    findings = run(
        module("src/lib/shell.ts", security_signals=("child_process", "exec")),
        route("app/api/render/route.ts", methods=("GET",), security_signals=("eval",)),
        module("src/components/Html.tsx", exports=[ExportInfo("Html", "default")],
               security_signals=("dangerouslySetInnerHTML",)),
    )
    assert sorted((f.file_path, f.message.split("`")[1]) for f in findings) == [
        ("app/api/render/route.ts", "eval"),
        ("src/lib/shell.ts", "child_process"),
        ("src/lib/shell.ts", "exec"),
    ]
    assert all(f.severity is Severity.WARNING for f in findings)
