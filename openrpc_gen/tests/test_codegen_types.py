import io

import pytest

from openrpc_gen.codegen.main import (
    GeneratorContext,
    _copy_derives,
    _doc_lines,
    _quote,
    generate,
    render,
    render_header,
    render_type,
)
from openrpc_gen.config import Config
from openrpc_gen.model import (
    AliasKind,
    ArrayType,
    BooleanType,
    EnumKind,
    EnumTag,
    ExternalRef,
    Field,
    File,
    IntegerType,
    LocalRef,
    Method,
    StringType,
    StructKind,
    TypeDef,
    Variant,
)
from openrpc_gen.resolver import TypeResolver

ITEM = "#/components/schemas/Item"
VALUE = "#/components/schemas/Value"


@pytest.fixture(scope="module")
def ctx():
    return GeneratorContext()


def _render(ctx, type_def, config=None, types=None):
    config = config or Config()
    file = File(types=types or {type_def.path: type_def})
    return render_type(ctx, TypeResolver(file, config), config, type_def)


def _item(**overrides):
    fields = {
        "id": Field(path=f"{ITEM}/properties/id", name="id", name_in_json="id", ty=IntegerType()),
        "name": Field(
            path=f"{ITEM}/properties/name",
            name="name",
            name_in_json="name",
            ty=StringType(),
            required=False,
        ),
    }
    fields.update(overrides)
    return TypeDef(path=ITEM, name="Item", kind=StructKind(fields))


class TestQuote:
    def test_quote_basic_string(self):
        assert _quote("eth_getBlock") == '"eth_getBlock"'

    def test_quote_escapes(self):
        assert _quote('say "hi"\n') == '"say \\"hi\\"\\n"'

    def test_quote_keeps_unicode(self):
        assert _quote("héllo") == '"héllo"'


class TestDocLines:
    def test_none(self):
        assert _doc_lines(None) == []

    def test_paragraphs(self):
        assert _doc_lines("Line one\n\nLine two\n") == [" Line one", "", " Line two"]


class TestCopyDerives:
    def test_adds_both(self):
        assert _copy_derives(["Serialize, Deserialize"]) == ["Clone, Copy"]

    def test_skips_configured(self):
        assert _copy_derives(["Serialize, Deserialize", "Debug, Clone"]) == ["Copy"]

    def test_nothing_missing(self):
        assert _copy_derives(["Clone", "Copy, PartialEq"]) == []


class TestRenderHeader:
    def test_header_without_imports(self, ctx):
        header = render_header(ctx, Config())
        assert header.startswith("//\n// This file was automatically generated by openrpc-gen.\n")
        assert header.endswith("use serde::{Serialize, Deserialize};\n\n")

    def test_header_with_imports(self, ctx):
        config = Config.from_dict({"generation": {"additional_imports": ["crate::types::Felt", "std::collections::HashMap"]}})
        header = render_header(ctx, config)
        assert header.endswith(
            "use serde::{Serialize, Deserialize};\n"
            "use crate::types::Felt;\n"
            "use std::collections::HashMap;\n"
            "\n"
        )


class TestRenderAlias:
    def test_alias(self, ctx):
        type_def = TypeDef(path=ITEM, name="BlockHash", kind=AliasKind(StringType()))
        assert _render(ctx, type_def) == "pub type BlockHash = String;\n\n"

    def test_alias_documentation(self, ctx):
        type_def = TypeDef(
            path=ITEM,
            name="Blocks",
            kind=AliasKind(ArrayType(ExternalRef("Block"))),
            documentation="A list of blocks.\n\nNewest first.",
        )
        assert _render(ctx, type_def) == (
            "/// A list of blocks.\n"
            "///\n"
            "/// Newest first.\n"
            "pub type Blocks = Vec<Block>;\n"
            "\n"
        )


class TestRenderStruct:
    def test_required_and_optional_fields(self, ctx):
        assert _render(ctx, _item()) == (
            "#[derive(Debug, Clone, Serialize, Deserialize)]\n"
            "pub struct Item {\n"
            "    pub id: i64,\n"
            "    #[serde(default)]\n"
            "    pub name: Option<String>,\n"
            "}\n"
            "\n"
        )

    def test_rename_flatten_and_attributes(self, ctx):
        type_def = _item(
            block_hash=Field(
                path=f"{ITEM}/properties/blockHash",
                name="block_hash",
                name_in_json="blockHash",
                ty=ExternalRef("Felt"),
                required=False,
            ),
            common=Field(
                path=f"{ITEM}/allOf/0",
                name="common",
                name_in_json="common",
                ty=ExternalRef("Common"),
                flatten=True,
            ),
        )
        config = Config.from_dict({"generation": {"field_attributes": {"Felt": ['#[serde(with = "felt")]']}}})
        output = _render(ctx, type_def, config)
        assert (
            "    #[serde(default)]\n"
            '    #[serde(rename = "blockHash")]\n'
            '    #[serde(with = "felt")]\n'
            "    pub block_hash: Option<Felt>,\n"
        ) in output
        assert "    #[serde(flatten)]\n    pub common: Common,\n" in output

    def test_raw_identifier_keeps_wire_name(self, ctx):
        type_def = _item(**{"r#type": Field(path=f"{ITEM}/properties/type", name="r#type", name_in_json="type", ty=StringType())})
        output = _render(ctx, type_def)
        assert "rename" not in output
        assert "    pub r#type: String,\n" in output

    def test_path_derives_follow_automatic_ones(self, ctx):
        config = Config.from_dict({"generation": {"derives": {ITEM: ["PartialEq, Eq"]}, "global_derives": ["Hash"]}})
        output = _render(ctx, _item(), config)
        assert output.startswith(
            "#[derive(Debug, Clone, Serialize, Deserialize)]\n#[derive(PartialEq, Eq)]\npub struct Item {\n"
        )
        assert "Hash" not in output

    def test_broken_field_reference(self, ctx):
        missing = "#/components/schemas/Missing"
        type_def = _item(parent=Field(path=f"{ITEM}/properties/parent", name="parent", name_in_json="parent", ty=LocalRef(missing)))
        output = _render(ctx, type_def)
        assert f"    pub parent: BrokenReference /* {missing} */,\n" in output
        assert output.endswith("}\n\n")

    def test_debug_path(self, ctx):
        output = _render(ctx, _item(), Config(debug_path=True))
        assert output.startswith(f"// {ITEM}\n#[derive(")
        assert f"    // {ITEM}/properties/id\n    pub id: i64,\n" in output

    def test_field_documentation(self, ctx):
        type_def = _item(
            id=Field(path=f"{ITEM}/properties/id", name="id", name_in_json="id", ty=IntegerType(), documentation="Unique id.")
        )
        assert "    /// Unique id.\n    pub id: i64,\n" in _render(ctx, type_def)


class TestRenderEnum:
    def test_untagged_variants_in_declared_order(self, ctx):
        type_def = TypeDef(
            path=VALUE,
            name="Value",
            kind=EnumKind(
                EnumTag.untagged(),
                {
                    "A": Variant(path=f"{VALUE}/oneOf/0", name="A", ty=IntegerType()),
                    "B": Variant(path=f"{VALUE}/oneOf/1", name="B", ty=StringType()),
                },
            ),
        )
        assert _render(ctx, type_def) == (
            "#[derive(Serialize, Deserialize)]\n"
            "#[serde(untagged)]\n"
            "pub enum Value {\n"
            "    A(i64),\n"
            "    B(String),\n"
            "}\n"
            "\n"
        )

    def test_tagged(self, ctx):
        type_def = TypeDef(
            path=VALUE,
            name="Event",
            kind=EnumKind(
                EnumTag.tagged("kind"),
                {
                    "Deposit": Variant(path=f"{VALUE}/oneOf/0", name="Deposit", ty=ExternalRef("Deposit"), name_in_json="deposit"),
                    "Withdrawal": Variant(path=f"{VALUE}/oneOf/1", name="Withdrawal", ty=ExternalRef("Withdrawal"), name_in_json="Withdrawal"),
                },
            ),
        )
        output = _render(ctx, type_def)
        assert '#[serde(tag = "kind")]\npub enum Event {\n' in output
        assert '    #[serde(rename = "deposit")]\n    Deposit(Deposit),\n' in output
        assert "    Withdrawal(Withdrawal),\n" in output
        assert output.count("rename") == 1

    def test_copyable_unit_enum(self, ctx):
        type_def = TypeDef(
            path=VALUE,
            name="BlockTag",
            kind=EnumKind(
                EnumTag.normal(),
                {
                    "Latest": Variant(path=f"{VALUE}/enum/0", name="Latest", name_in_json="latest"),
                    "Pending": Variant(path=f"{VALUE}/enum/1", name="Pending", name_in_json="pending"),
                },
                is_copyable=True,
            ),
        )
        config = Config.from_dict(
            {"generation": {"global_derives": ["Debug"], "derives": {VALUE: ["PartialEq, Eq"]}}}
        )
        assert _render(ctx, type_def, config) == (
            "#[derive(Serialize, Deserialize)]\n"
            "#[derive(Debug)]\n"
            "#[derive(PartialEq, Eq)]\n"
            "#[derive(Clone, Copy)]\n"
            "pub enum BlockTag {\n"
            '    #[serde(rename = "latest")]\n'
            "    Latest,\n"
            '    #[serde(rename = "pending")]\n'
            "    Pending,\n"
            "}\n"
            "\n"
        )

    def test_copy_derive_not_repeated(self, ctx):
        type_def = TypeDef(
            path=VALUE,
            name="Flag",
            kind=EnumKind(EnumTag.normal(), {"On": Variant(path=f"{VALUE}/enum/0", name="On")}, is_copyable=True),
        )
        config = Config.from_dict({"generation": {"global_derives": ["Debug, Clone"]}})
        output = _render(ctx, type_def, config)
        assert "#[derive(Debug, Clone)]\n#[derive(Copy)]\n" in output
        assert "    On,\n" in output
        assert "#[serde(" not in output

    def test_non_copyable_enum_gets_no_copy(self, ctx):
        type_def = TypeDef(
            path=VALUE,
            name="Value",
            kind=EnumKind(EnumTag.normal(), {"A": Variant(path=f"{VALUE}/oneOf/0", name="A", ty=BooleanType())}),
        )
        assert "Copy" not in _render(ctx, type_def)

    def test_variant_debug_path_and_documentation(self, ctx):
        type_def = TypeDef(
            path=VALUE,
            name="Value",
            kind=EnumKind(
                EnumTag.untagged(),
                {"A": Variant(path=f"{VALUE}/oneOf/0", name="A", ty=BooleanType(), documentation="The flag.")},
            ),
            documentation="A value.",
        )
        output = _render(ctx, type_def, Config(debug_path=True))
        assert output.startswith(f"// {VALUE}\n/// A value.\n#[derive(Serialize, Deserialize)]\n")
        assert f"    // {VALUE}/oneOf/0\n    /// The flag.\n    A(bool),\n" in output


class FailingWriter(io.StringIO):
    """Accepts a fixed number of writes, then fails."""

    def __init__(self, allowed: int) -> None:
        super().__init__()
        self.allowed = allowed

    def write(self, s: str) -> int:
        if self.allowed == 0:
            raise OSError("disk full")
        self.allowed -= 1
        return super().write(s)


class TestGenerate:
    @pytest.fixture
    def file(self):
        value = TypeDef(
            path=VALUE,
            name="Value",
            kind=EnumKind(
                EnumTag.untagged(),
                {
                    "A": Variant(path=f"{VALUE}/oneOf/0", name="A", ty=IntegerType()),
                    "B": Variant(path=f"{VALUE}/oneOf/1", name="B", ty=LocalRef("#/components/schemas/Gone")),
                },
            ),
        )
        return File(types={ITEM: _item(), VALUE: value}, methods=[Method(name="eth_chainId")])

    def test_deterministic(self, file):
        assert render(file, Config()) == render(file, Config())

    def test_output_order(self, file):
        output = render(file, Config())
        assert output.index("use serde::") < output.index("pub struct Item") < output.index("pub enum Value")
        assert output.index("pub enum Value") < output.index("pub const ETH_CHAIN_ID")

    def test_broken_reference_does_not_abort(self, file):
        output = render(file, Config())
        assert "    B(BrokenReference /* #/components/schemas/Gone */),\n" in output
        assert "pub struct EthChainIdParams" in output

    def test_generate_to_stream(self, file):
        buffer = io.StringIO()
        generate(buffer, file, Config())
        assert buffer.getvalue() == render(file, Config())

    def test_sink_error_propagates(self, file):
        writer = FailingWriter(allowed=2)
        with pytest.raises(OSError, match="disk full"):
            generate(writer, file, Config())
        output = writer.getvalue()
        assert "pub struct Item" in output
        assert "pub enum Value" not in output

    def test_empty_file(self):
        assert render(File(), Config()).endswith("use serde::{Serialize, Deserialize};\n\n")
