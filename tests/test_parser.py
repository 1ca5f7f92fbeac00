# =============================================================================
# test_parser.py - Statement Parser Tests
# =============================================================================
# Tests for statement splitting, classification, sizing and encoding.
#
# Test coverage includes:
#   - Splitting lines at ';' and stripping '..' comments
#   - Labels, equates and the directives DC, ORG, PAGE, END
#   - Every operand kind and its encoding
#   - Trailing data-lists after instructions
#   - Short branch page check in the final pass only
#   - One error kind per failing statement
# =============================================================================

import pytest
from asm1802.assembler.context import AssemblyContext, FINAL_PASS, FIRST_PASS
from asm1802.assembler.parser import (
    Statement,
    StatementParser,
    StatementType,
    split_source,
    split_statements,
)
from asm1802.errors import ErrorKind


# =============================================================================
# Helper Functions
# =============================================================================

def parse(text, symbols=None, pc=0, final=False) -> Statement:
    """
    Parse a single statement.

    Args:
        text: Statement text
        symbols: Symbols to define beforehand
        pc: Location counter
        final: True to parse as in the final pass
    """
    context = AssemblyContext()
    for name, value in (symbols or {}).items():
        context.symbols.define(name, value)
    context.reset(FINAL_PASS if final else FIRST_PASS)
    context.set_pc(pc)
    return StatementParser(context).parse(Statement(text, 1))


def assert_error(text, kind, **kwargs):
    """Parse text and check that it fails with the given kind."""
    statement = parse(text, **kwargs)
    assert statement.type == StatementType.ERROR
    assert statement.error == kind
    assert statement.code == b""
    return statement


# =============================================================================
# Splitter Tests
# =============================================================================

class TestSplitStatements:
    """Test cutting source lines into statements."""

    def test_single(self):
        """A line without semicolons is one statement."""
        assert split_statements("LDI #05", 1) == [("LDI #05", 1)]

    def test_semicolons(self):
        """Semicolons separate statements on a line."""
        assert split_statements("LDI 5; PLO R2", 3) == [("LDI 5", 3), (" PLO R2", 3)]

    def test_blank_statements_dropped(self):
        """Empty statements between semicolons are dropped."""
        assert split_statements(";; ;", 1) == []
        assert split_statements("", 1) == []

    def test_semicolon_inside_string(self):
        """A semicolon inside a string does not split the line."""
        assert split_statements("DC T'A;B'; NOP", 1) == [("DC T'A;B'", 1), (" NOP", 1)]

    def test_comment(self):
        """Two periods start a comment that runs to the end of the line."""
        assert split_statements("LDI 5 .. load; NOP", 1) == [("LDI 5 ", 1)]

    def test_comment_only(self):
        """A comment-only line has no statements."""
        assert split_statements(".. nothing here", 1) == []

    def test_single_period_kept(self):
        """A single period is not a comment."""
        assert split_statements("LDI A.0(X)", 1) == [("LDI A.0(X)", 1)]

    def test_periods_inside_string(self):
        """Periods inside a string are not a comment."""
        assert split_statements("DC T'..'", 1) == [("DC T'..'", 1)]

    def test_doubled_quote_inside_string(self):
        """A doubled quote does not end the string."""
        assert split_statements("DC T'IT''S;'", 1) == [("DC T'IT''S;'", 1)]


class TestSplitSource:
    """Test building the statement sequence of a program."""

    def test_indexes_and_lines(self):
        """Statements are numbered in order and keep their line number."""
        statements = split_source(["A: NOP; NOP", "", "END"])
        assert [s.index for s in statements] == [0, 1, 2]
        assert [s.line_number for s in statements] == [1, 1, 3]

    def test_line_terminators_removed(self):
        """Line terminators are stripped."""
        statements = split_source(["NOP\r\n"])
        assert statements[0].text == "NOP"


# =============================================================================
# Statement Structure Tests
# =============================================================================

class TestStructure:
    """Test labels, equates and empty statements."""

    def test_empty(self):
        """A blank statement parses as NOP."""
        assert parse("   ").type == StatementType.NOP

    def test_label_only(self):
        """A label may stand alone."""
        statement = parse("LOOP:")
        assert statement.type == StatementType.NOP
        assert statement.label == "LOOP"
        assert statement.size == 0

    def test_label_with_instruction(self):
        """A label is upper-cased and the instruction follows it."""
        statement = parse("start: NOP")
        assert statement.label == "START"
        assert statement.type == StatementType.INSTR
        assert statement.code == b"\xC4"

    def test_equate(self):
        """NAME = expr is an equate."""
        statement = parse("COUNT = #10")
        assert statement.type == StatementType.EQU
        assert statement.label == "COUNT"
        assert statement.value == 0x10
        assert statement.equate
        assert statement.size == 0

    def test_equate_forward_reference(self):
        """An equate of a later symbol is unresolved in pass 1."""
        statement = parse("COUNT = LATER")
        assert statement.type == StatementType.EQU
        assert statement.unresolved

    def test_equate_after_label(self):
        """An equate cannot follow a label."""
        assert_error("X: Y = 1", ErrorKind.INV_SYNTAX)

    def test_equate_missing_expression(self):
        """An equate needs an expression."""
        statement = assert_error("COUNT =", ErrorKind.MISSING_EXPR)
        assert statement.equate

    def test_bad_start(self):
        """A statement cannot start with a number."""
        assert_error("5 NOP", ErrorKind.BAD_START)

    def test_period_start(self):
        """A statement starting with a period is reported as such."""
        assert_error(".NOP", ErrorKind.INV_PERIOD)

    def test_bad_start_after_label(self):
        """A number after a label is a bad start."""
        assert_error("L: 5", ErrorKind.BAD_START)

    def test_error_keeps_label(self):
        """A statement in error keeps its label."""
        statement = assert_error("L: FOO", ErrorKind.INV_MNE)
        assert statement.label == "L"

    def test_invalid_mnemonic_detail(self):
        """An unknown mnemonic is named in the error."""
        statement = assert_error("FOO 5", ErrorKind.INV_MNE)
        assert "FOO" in str(statement.exception)

    def test_reparse_gives_same_result(self):
        """Parsing a statement again gives the same result."""
        context = AssemblyContext()
        parser = StatementParser(context)
        statement = Statement("LDI #05, T'AB'", 1)
        first = parser.parse(statement).code
        second = parser.parse(statement).code
        assert first == second == b"\xF8\x05\x41\x42"


# =============================================================================
# Directive Tests
# =============================================================================

class TestDirectives:
    """Test ORG, PAGE, END and DC."""

    def test_org(self):
        """ORG takes an address."""
        statement = parse("ORG #0100")
        assert statement.type == StatementType.ORG
        assert statement.value == 0x0100

    def test_org_trailing_text(self):
        """Text after the ORG address is an error."""
        assert_error("ORG #0100 X", ErrorKind.INV_SYNTAX)

    def test_page(self):
        """PAGE is a directive."""
        assert parse("PAGE").type == StatementType.PAGE

    def test_page_with_operand(self):
        """PAGE takes no operand."""
        assert_error("PAGE 1", ErrorKind.INV_SYNTAX)

    def test_end(self):
        """END may be surrounded by blanks."""
        assert parse("  END  ").type == StatementType.END

    def test_end_with_operand(self):
        """END takes no operand."""
        assert_error("END START", ErrorKind.INV_SYNTAX)

    def test_dc_bytes(self):
        """DC items give one or two bytes each."""
        statement = parse("DC 1,2,#300")
        assert statement.type == StatementType.DC
        assert statement.code == b"\x01\x02\x03\x00"
        assert statement.size == 4

    def test_dc_string(self):
        """A string item gives one byte per character."""
        assert parse("DC T'AB'").code == b"AB"

    def test_dc_string_upper_cased(self):
        """Lower-case letters in a string are stored as upper case."""
        assert parse("DC T'ab'").code == b"\x41\x42"

    def test_dc_string_with_offset(self):
        """A string followed by an offset is an expression, not text."""
        assert parse("DC T'A'+1").code == b"\x00\x42"

    def test_dc_decimal(self):
        """D'' items are accepted."""
        assert parse("DC D'255'").code == b"\xFF"
        assert parse("DC D'256'").code == b"\x01\x00"

    def test_dc_binary(self):
        """B'' items are accepted."""
        assert parse("DC B'1010'").code == b"\x0A"

    def test_dc_address(self):
        """A() items give two bytes, high first."""
        assert parse("DC A(START)", symbols={"START": 0x0123}).code == b"\x01\x23"

    def test_bare_data_list(self):
        """A leading comma starts a data list."""
        statement = parse(",1,2")
        assert statement.type == StatementType.DC
        assert statement.code == b"\x01\x02"

    def test_label_with_data_list(self):
        """A label may precede a bare data list."""
        statement = parse("TABLE: ,#10")
        assert statement.label == "TABLE"
        assert statement.code == b"\x10"

    def test_dc_empty(self):
        """DC needs at least one item."""
        assert_error("DC", ErrorKind.MISSING_EXPR)

    def test_dc_empty_item(self):
        """Empty items are not allowed."""
        assert_error("DC 1,,2", ErrorKind.MISSING_EXPR)

    def test_dc_missing_comma(self):
        """Items must be separated by commas."""
        assert_error("DC 1 2", ErrorKind.INV_SYNTAX)

    def test_dc_forward_reference_first_pass(self):
        """A forward reference in DC reads as 0 in pass 1."""
        assert parse("DC LATER").code == b"\x00"


# =============================================================================
# Instruction Encoding Tests
# =============================================================================

class TestInstructions:
    """Test encoding of each operand kind."""

    def test_no_operand(self):
        """Instructions without operands are one byte."""
        statement = parse("NOP")
        assert statement.type == StatementType.INSTR
        assert statement.code == b"\xC4"
        assert statement.size == 1

    def test_no_operand_extra_text(self):
        """An operand after an instruction that takes none is an error."""
        assert_error("IRX 5", ErrorKind.INV_SYNTAX)

    def test_register(self):
        """The register is packed into the opcode."""
        assert parse("INC R5").code == b"\x15"
        assert parse("INC 5").code == b"\x15"
        assert parse("SEP RF").code == b"\xDF"

    def test_register_out_of_range(self):
        """Register 16 is out of range."""
        assert_error("SEX 16", ErrorKind.INV_REG)

    def test_ldn_register_zero(self):
        """LDN R0 would be IDL, so register 0 is rejected."""
        assert_error("LDN 0", ErrorKind.INV_REG)
        assert parse("LDN R1").code == b"\x01"

    def test_device(self):
        """The device is packed into the opcode."""
        assert parse("OUT 4").code == b"\x64"
        assert parse("INP 1").code == b"\x69"

    def test_device_out_of_range(self):
        """Device 8 is out of range."""
        assert_error("INP 8", ErrorKind.INV_DEV)

    def test_immediate(self):
        """LDI takes a one-byte operand."""
        statement = parse("LDI #05")
        assert statement.code == b"\xF8\x05"
        assert statement.size == 2

    def test_immediate_ff(self):
        """LDI #FF is two bytes."""
        assert parse("LDI #FF").size == 2

    def test_immediate_address(self):
        """LDI A(..) carries a two-byte operand."""
        statement = parse("LDI A(#1234)")
        assert statement.code == b"\xF8\x12\x34"
        assert statement.size == 3

    def test_immediate_low_byte(self):
        """A.0() gives a one-byte immediate operand."""
        assert parse("LDI A.0(#1234)").code == b"\xF8\x34"

    def test_immediate_large_constant_truncated(self):
        """Only A() widens the operand; other values keep their low byte."""
        assert parse("LDI #1234").code == b"\xF8\x34"

    def test_short_branch(self):
        """A short branch takes the low byte of its target."""
        statement = parse("BR #0010")
        assert statement.code == b"\x30\x10"
        assert statement.size == 2

    def test_long_branch(self):
        """A long branch takes the full target address."""
        statement = parse("LBR #1234")
        assert statement.code == b"\xC0\x12\x34"
        assert statement.size == 3

    def test_trailing_data_list(self):
        """An instruction may be followed by a data list."""
        statement = parse("LDI 5,6")
        assert statement.code == b"\xF8\x05\x06"
        assert statement.size == 3

    def test_call_with_inline_address(self):
        """A SEP call may carry an inline address."""
        statement = parse("SEP R4, A(#0123)")
        assert statement.code == b"\xD4\x01\x23"
        assert statement.size == 3

    def test_trailing_garbage(self):
        """Text after the operand is an error."""
        assert_error("LDI 5 6", ErrorKind.INV_SYNTAX)

    def test_trailing_period(self):
        """A period after the operand is reported as such."""
        assert_error("LDI 5 .X", ErrorKind.INV_PERIOD)

    def test_missing_operand(self):
        """An instruction that needs an operand reports it missing."""
        assert_error("LDI", ErrorKind.MISSING_EXPR)

    def test_error_keeps_instruction_size(self):
        """A statement in error keeps the size of its instruction."""
        statement = assert_error("L: LDI #ZZ", ErrorKind.INV_HCONST)
        assert statement.size == 2
        assert statement.label == "L"


# =============================================================================
# Short Branch Page Tests
# =============================================================================

class TestShortBranchPage:
    """Test the same-page rule for short branches."""

    def test_out_of_page_first_pass(self):
        """The first pass does not check the page."""
        statement = parse("BR #0200")
        assert statement.type == StatementType.INSTR
        assert statement.code == b"\x30\x00"

    def test_out_of_page_final_pass(self):
        """A short branch out of its page is an error in the final pass."""
        statement = assert_error("BR #0200", ErrorKind.INV_BRANCH, final=True)
        assert statement.size == 2

    def test_in_page_final_pass(self):
        """A short branch in its page is accepted in the final pass."""
        assert parse("BZ #00F0", pc=0x0010, final=True).code == b"\x32\xF0"

    def test_page_of_operand_byte(self):
        """The page is that of the operand byte, not the opcode."""
        assert parse("BR #0110", pc=0x00FF, final=True).code == b"\x30\x10"
        assert_error("BR #0010", ErrorKind.INV_BRANCH, pc=0x00FF, final=True)

    def test_undefined_target_final_pass(self):
        """An undefined branch target is an error in the final pass."""
        assert_error("BR NOWHERE", ErrorKind.UNDEF_SYMB, final=True)


@pytest.mark.parametrize("text,code", [
    ("IDL", b"\x00"),
    ("SHL", b"\xFE"),
    ("SHLC", b"\x7E"),
    ("RSHL", b"\x7E"),
    ("SHRC", b"\x76"),
    ("SKP", b"\x38"),
    ("LSKP", b"\xC8"),
    ("NLBR #1234", b"\xC8\x12\x34"),
    ("BGE #0004", b"\x33\x04"),
    ("SMI #01", b"\xFF\x01"),
    ("MARK", b"\x79"),
])
def test_opcodes(text, code):
    """Spot check opcodes including aliases."""
    assert parse(text).code == code
