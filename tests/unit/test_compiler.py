"""
End-to-end tests for the compile pipeline, options and error types.
"""

import json

import pytest

from m3l import __version__
from m3l.core import ir
from m3l.core.compiler import compile_sources, compile_string, ensure_valid
from m3l.core.config import CompileOptions
from m3l.core.errors import CompilationError, ErrorContext, NoSourcesError


class TestShopFixture:
    """The two-file shop project compiles cleanly."""

    def test_no_diagnostics(self, shop_ast: ir.M3LAST) -> None:
        assert shop_ast.errors == []
        assert shop_ast.warnings == []
        assert shop_ast.has_errors is False

    def test_project_and_sources(self, shop_ast: ir.M3LAST) -> None:
        assert shop_ast.project.name == "shop"
        assert shop_ast.sources == ["01_base.m3l.md", "02_orders.m3l.md"]
        assert shop_ast.parser_version == __version__

    def test_elements(self, shop_ast: ir.M3LAST) -> None:
        assert [m.name for m in shop_ast.models] == ["Customer", "Order", "OrderItem"]
        assert [i.name for i in shop_ast.interfaces] == ["Timestampable"]
        assert [e.name for e in shop_ast.enums] == ["Status"]
        assert [v.name for v in shop_ast.views] == ["PaidOrders"]
        assert [e.name for e in shop_ast.attribute_registry] == ["audit"]

    def test_inherited_fields_come_first(self, shop_ast: ir.M3LAST) -> None:
        customer = shop_ast.get_model("Customer")

        assert [f.name for f in customer.fields] == [
            "created_at",
            "updated_at",
            "id",
            "name",
            "email",
        ]
        assert customer.fields[0].location.file == "01_base.m3l.md"
        assert customer.get_field("email").attributes[1].is_registered is True

    def test_order_field_kinds(self, shop_ast: ir.M3LAST) -> None:
        order = shop_ast.get_model("Order")
        kinds = {f.name: f.kind for f in order.fields}

        assert kinds["total"] == ir.FieldKind.STORED
        assert kinds["customer_name"] == ir.FieldKind.LOOKUP
        assert kinds["item_count"] == ir.FieldKind.ROLLUP
        assert kinds["total_with_tax"] == ir.FieldKind.COMPUTED
        assert order.get_field("total_with_tax").computed.expression == "total * 1.1"
        assert order.get_field("customer_id").attributes[0].cascade == "!"
        assert order.sections.metadata == {"table": "orders", "version": 2}
        assert order.sections.indexes[0]["fields"] == "[status, created_at]"

    def test_view(self, shop_ast: ir.M3LAST) -> None:
        view = shop_ast.views[0]

        assert view.materialized is True
        assert view.source_def.from_ == "Order"
        assert view.source_def.where == "status = 'paid'"
        assert [f.name for f in view.fields] == ["id", "total"]
        assert view.refresh.strategy == "incremental"

    def test_strict_shop_has_no_errors(self, shop_sources: list[tuple[str, str]]) -> None:
        ast = compile_sources(shop_sources, CompileOptions(strict=True))

        assert ast.errors == []

    def test_order_of_sources_decides_first_definition(self) -> None:
        sources = [("z.m3l.md", "## User\n"), ("a.m3l.md", "## User\n")]

        ast = compile_sources(sources)

        assert ast.errors[0].file == "a.m3l.md"
        assert "z.m3l.md:1" in ast.errors[0].message


class TestJsonOutput:
    """Published JSON shape."""

    def test_camel_case_keys(self, shop_ast: ir.M3LAST) -> None:
        data = json.loads(shop_ast.to_json())

        assert data["parserVersion"] == "0.4.0"
        assert data["astVersion"] == "1.0"
        assert data["project"] == {"name": "shop"}
        assert "attributeRegistry" in data

        view = data["views"][0]
        assert view["sourceDef"]["from"] == "Order"
        assert view["sourceDef"]["orderBy"] == "created_at desc"
        assert view["sourceId"] == "02_orders.m3l.md"

        order = next(m for m in data["models"] if m["name"] == "Order")
        total = next(f for f in order["fields"] if f["name"] == "total")
        assert total["sizeParams"] == ["12", "2"]
        assert total["defaultValueType"] == "literal"
        assert total["location"] == {"file": "02_orders.m3l.md", "line": 10, "col": 1}

    def test_null_values_are_omitted(self) -> None:
        ast = compile_string("## User\n- name: string\n")
        name = ast.to_dict()["models"][0]["fields"][0]

        assert "label" not in name
        assert "defaultValue" not in name
        assert name["isArray"] is False

    def test_diagnostics_serialize_with_code_and_severity(self) -> None:
        ast = compile_string("## User : Ghost\n", "user.m3l.md")
        error = ast.to_dict()["errors"][0]

        assert error["code"] == "E007"
        assert error["severity"] == "error"
        assert error["file"] == "user.m3l.md"
        assert error["line"] == 1
        assert error["col"] == 1


class TestCompileErrors:
    """Exceptions raised by the pipeline."""

    def test_no_sources(self) -> None:
        with pytest.raises(NoSourcesError, match="No input files found"):
            compile_sources([])

    def test_ensure_valid_passes_clean_ast(self, shop_ast: ir.M3LAST) -> None:
        assert ensure_valid(shop_ast) is shop_ast

    def test_ensure_valid_raises_with_diagnostics(self) -> None:
        ast = compile_string("## User : Ghost\n## Other : Missing\n", "user.m3l.md")

        with pytest.raises(CompilationError) as exc_info:
            ensure_valid(ast)

        error = exc_info.value
        assert len(error.diagnostics) == 2
        assert error.context == ErrorContext(file="user.m3l.md", line=1, column=1)
        assert "2 error(s)" in str(error)
        assert "user.m3l.md:2:1: E007" in str(error)

    def test_error_context_format(self) -> None:
        context = ErrorContext(file="a.m3l.md", line=7, snippet="- name: strng")

        assert context.format() == "a.m3l.md:7:1\n   7 | - name: strng"

    def test_diagnostic_format(self) -> None:
        diagnostic = ir.Diagnostic.create(
            ir.DiagnosticCode.LINE_TOO_LONG, "Field is long", "a.m3l.md", 4
        )

        assert diagnostic.severity == ir.Severity.WARNING
        assert diagnostic.format() == "a.m3l.md:4:1: W001 Field is long"


class TestCompileOptions:
    """Options from keyword arguments and environment variables."""

    def test_defaults(self) -> None:
        options = CompileOptions()

        assert options.strict is False
        assert options.project is None

    @pytest.mark.parametrize("value", ["1", "true", "YES", "on"])
    def test_strict_from_env(self, value: str) -> None:
        assert CompileOptions.from_env({"M3L_STRICT": value}).strict is True

    def test_unset_env_gives_defaults(self) -> None:
        assert CompileOptions.from_env({}) == CompileOptions()

    def test_project_from_env(self) -> None:
        options = CompileOptions.from_env(
            {"M3L_STRICT": "0", "M3L_PROJECT_NAME": "billing", "M3L_PROJECT_VERSION": "3.0"}
        )

        assert options.strict is False
        assert options.project == ir.ProjectInfo(name="billing", version="3.0")

    def test_reads_process_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("M3L_STRICT", "true")
        monkeypatch.delenv("M3L_PROJECT_NAME", raising=False)
        monkeypatch.delenv("M3L_PROJECT_VERSION", raising=False)

        assert CompileOptions.from_env().strict is True

    def test_explicit_project_reaches_ast(self) -> None:
        options = CompileOptions(project=ir.ProjectInfo(name="billing"))

        ast = compile_sources([("a.m3l.md", "# Namespace: shop\n## A\n")], options)

        assert ast.project.name == "billing"
