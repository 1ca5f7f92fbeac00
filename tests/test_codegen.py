# =============================================================================
# test_codegen.py - Two-Pass Code Generator Tests
# =============================================================================
# Tests for the driver that runs both passes over a program.
#
# Test coverage includes:
#   - Label binding and forward references
#   - Equates, including equates of forward labels
#   - ORG, PAGE and END handling of the location counter
#   - Duplicate symbols: first definition wins, later ones reported
#   - Short branch errors raised in the second pass only
#   - Error statements keeping their first-pass size
#   - Statements whose size changes between the passes
#   - Listing lines and diagnostics
#   - Repeating the second pass
#   - Object image chunks
# =============================================================================

from asm1802.assembler.codegen import MISSING_END, CodeGenerator, ObjectImage
from asm1802.assembler.context import AssemblyContext
from asm1802.errors import ErrorKind


# =============================================================================
# Helper Functions
# =============================================================================

def generate(lines, defines=None) -> CodeGenerator:
    """Run both passes over source lines and return the code generator."""
    codegen = CodeGenerator()
    for name, value in (defines or {}).items():
        codegen.define_symbol(name, value)
    codegen.generate(lines)
    return codegen


def snapshot(codegen: CodeGenerator):
    """Everything pass 2 produces, for comparing runs."""
    return (
        codegen.image.segments(),
        [(l.address, l.code, list(l.diagnostics)) for l in codegen.listing],
        [str(e) for e in codegen.errors.errors],
        codegen.errors.warnings[:],
    )


# =============================================================================
# Basic Program Tests
# =============================================================================

class TestBasicPrograms:
    """Test small complete programs."""

    def test_label_and_branch(self):
        """A label binds to the location counter and a branch uses it."""
        codegen = generate(["START: LDI #05", "       BR START", "       END"])
        assert codegen.error_count() == 0
        assert codegen.symbols.value_of("START") == 0x0000
        assert codegen.listing[0].code == b"\xF8\x05"
        assert codegen.listing[1].code == b"\x30\x00"
        assert codegen.image.to_bytes() == b"\xF8\x05\x30\x00"

    def test_generate_returns_image(self):
        """generate() returns the flattened object image."""
        codegen = CodeGenerator()
        assert codegen.generate(["SEQ", "REQ", "END"]) == b"\x7B\x7A"

    def test_address_operand_widens_instruction(self):
        """An A() operand gives LDI a two-byte operand."""
        codegen = generate(["LDI A(L)", "LDI #FF", "L: NOP", "END"])
        assert codegen.listing[0].code == b"\xF8\x00\x05"
        assert codegen.listing[1].code == b"\xF8\xFF"
        assert codegen.symbols.value_of("L") == 5

    def test_several_statements_on_a_line(self):
        """Statements separated by semicolons are all generated."""
        codegen = generate(["SEQ; REQ", "END"])
        assert codegen.listing[0].code == b"\x7B\x7A"

    def test_data_list_widths(self):
        """Data items take one or two bytes by their size hint."""
        codegen = generate(["DC D'256', T'AB', D'255'", "END"])
        assert codegen.image.to_bytes() == b"\x01\x00\x41\x42\xFF"

    def test_predefined_symbol(self):
        """A pre-defined symbol can be used as an operand."""
        codegen = generate(["OUT PORT", "END"], defines={"PORT": 4})
        assert codegen.image.to_bytes() == b"\x64"
        assert codegen.error_count() == 0


# =============================================================================
# Forward Reference Tests
# =============================================================================

class TestForwardReferences:
    """Test symbols used before they are defined."""

    def test_forward_short_branch(self):
        """A short branch to a later label resolves in pass 2."""
        codegen = generate(["BR AHEAD", "NOP", "AHEAD: SEQ", "END"])
        assert codegen.error_count() == 0
        assert codegen.listing[0].code == b"\x30\x03"

    def test_forward_long_branch(self):
        """A long branch to a later label resolves in pass 2."""
        codegen = generate(["LBR FAR", "ORG #1234", "FAR: NOP", "END"])
        assert codegen.listing[0].code == b"\xC0\x12\x34"

    def test_first_pass_accepts_forward_references(self):
        """Pass 1 reads forward references as 0 without error."""
        codegen = CodeGenerator()
        codegen.load(["LDI A.1(TABLE)", "TABLE: DC 1", "END"])
        codegen.run_pass1()
        assert not any(s.is_error for s in codegen.statements)
        assert codegen.symbols.value_of("TABLE") == 2

    def test_equate_of_forward_label(self):
        """An equate may name a label defined further down."""
        codegen = generate(["X = LATER", "LBR X", "LATER: NOP", "END"])
        assert codegen.error_count() == 0
        assert codegen.symbols.value_of("X") == 3
        assert codegen.listing[1].code == b"\xC0\x00\x03"

    def test_undefined_symbol(self):
        """A symbol never defined is an error in pass 2."""
        codegen = generate(["LDI MISSING", "END"])
        assert codegen.error_count() == 1
        assert codegen.listing[0].diagnostics == ["Undefined symbol"]
        assert str(codegen.errors.errors[0]) == "line 1: error: Undefined symbol (MISSING)"


# =============================================================================
# Location Counter Tests
# =============================================================================

class TestLocationCounter:
    """Test ORG, PAGE, END and equates."""

    def test_org(self):
        """ORG moves the location counter."""
        codegen = generate(["ORG #0100", "HERE: NOP", "END"])
        assert codegen.symbols.value_of("HERE") == 0x0100
        assert codegen.image.segments() == [(0x0100, b"\xC4")]

    def test_page(self):
        """PAGE moves to the start of the next page."""
        codegen = generate(["ORG #0173", "PAGE", "HERE: NOP", "END"])
        assert codegen.symbols.value_of("HERE") == 0x0200

    def test_page_at_boundary(self):
        """PAGE on a page boundary still moves to the next page."""
        codegen = generate(["ORG #0200", "PAGE", "HERE: NOP", "END"])
        assert codegen.symbols.value_of("HERE") == 0x0300

    def test_equate_takes_no_space(self):
        """An equate does not advance the location counter."""
        codegen = generate(["A1 = 5", "HERE: NOP", "END"])
        assert codegen.symbols.value_of("A1") == 5
        assert codegen.symbols.value_of("HERE") == 0

    def test_location_counter_wraps(self):
        """The location counter wraps from $FFFF to $0000."""
        codegen = generate(["ORG #FFFF", "NOP", "HERE: NOP", "END"])
        assert codegen.symbols.value_of("HERE") == 0x0000

    def test_end_stops_assembly(self):
        """Lines after END are ignored."""
        codegen = generate(["NOP", "END", "SEQ"])
        assert codegen.image.to_bytes() == b"\xC4"
        assert len(codegen.listing) == 2

    def test_statements_after_end_on_same_line(self):
        """Statements following END on the same line are ignored."""
        codegen = generate(["NOP; END; SEQ"])
        assert codegen.image.to_bytes() == b"\xC4"

    def test_missing_end(self):
        """A program without END gets a warning, not an error."""
        codegen = generate(["NOP"])
        assert codegen.missing_end
        assert codegen.errors.warnings == [MISSING_END]
        assert codegen.error_count() == 0
        assert codegen.image.to_bytes() == b"\xC4"


# =============================================================================
# Duplicate Symbol Tests
# =============================================================================

class TestDuplicateSymbols:
    """Test symbols defined more than once."""

    def test_duplicate_label(self):
        """The second definition of a label is reported."""
        codegen = generate(["X: NOP", "X: SEQ", "END"])
        assert codegen.error_count() == 1
        assert codegen.errors.errors[0].kind == ErrorKind.DUP_SYM
        assert codegen.listing[0].diagnostics == []
        assert codegen.listing[1].diagnostics == ["Previously defined symbol"]
        assert codegen.symbols.value_of("X") == 0

    def test_duplicate_still_generates_code(self):
        """A statement with a duplicate label still generates code."""
        codegen = generate(["X: NOP", "X: SEQ", "END"])
        assert codegen.image.to_bytes() == b"\xC4\x7B"

    def test_duplicate_equate_keeps_first_value(self):
        """A duplicate equate keeps the first value."""
        codegen = generate(["A = 5", "A = 6", "LDI A", "END"])
        assert codegen.error_count() == 1
        assert codegen.symbols.value_of("A") == 5
        assert codegen.listing[2].code == b"\xF8\x05"

    def test_every_later_definition_reported(self):
        """Every definition after the first is reported."""
        codegen = generate(["X: NOP", "X: NOP", "X: NOP", "END"])
        assert codegen.error_count() == 2

    def test_redefining_predefined_symbol(self):
        """Redefining a pre-defined symbol is a duplicate."""
        codegen = generate(["PORT: NOP", "END"], defines={"PORT": 4})
        assert codegen.error_count() == 1
        assert codegen.symbols.value_of("PORT") == 4

    def test_duplicate_marked(self):
        """Duplicated names are marked in the symbol table."""
        codegen = generate(["X: NOP", "X: NOP", "END"])
        assert codegen.symbols.lookup("X").duplicate


# =============================================================================
# Error Handling Tests
# =============================================================================

class TestStatementErrors:
    """Test how statement errors affect layout and output."""

    def test_short_branch_error_in_second_pass_only(self):
        """Branch page errors are only raised in pass 2."""
        codegen = CodeGenerator()
        codegen.load(["ORG #00FF", "BR #0010", "END"])
        codegen.run_pass1()
        assert not codegen.statements[1].is_error

        codegen.run_pass2()
        assert codegen.error_count() == 1
        assert codegen.errors.errors[0].kind == ErrorKind.INV_BRANCH
        assert codegen.listing[1].diagnostics == ["Branch out of page"]

    def test_error_keeps_first_pass_size(self):
        """A statement in error still occupies its pass 1 size."""
        codegen = generate(["LDI #ZZ", "HERE: NOP", "END"])
        assert codegen.error_count() == 1
        assert codegen.symbols.value_of("HERE") == 2
        assert codegen.listing[1].address == 2
        assert codegen.image.segments() == [(2, b"\xC4")]

    def test_error_generates_no_code(self):
        """A statement in error emits no bytes."""
        codegen = generate(["ORG #00FF", "BR #0010", "NOP", "END"])
        assert codegen.image.segments() == [(0x0101, b"\xC4")]

    def test_error_line_number(self):
        """Errors carry the source line number."""
        codegen = generate(["NOP", "", "FOO", "END"])
        assert str(codegen.errors.errors[0]).startswith("line 3: error:")

    def test_errored_equate_leaves_symbol_unknown(self):
        """An equate in error leaves its symbol without a value."""
        codegen = generate(["COUNT = #ZZ", "END"])
        assert codegen.error_count() == 1
        assert not codegen.symbols.lookup("COUNT").resolved

    def test_size_change_between_passes(self):
        """A statement that shrinks in pass 2 is reported and keeps its size."""
        codegen = generate([" DC FF00", "FF00: NOP", "X: NOP", " LBR X", " END"])
        assert codegen.error_count() == 1
        assert codegen.errors.errors[0].kind == ErrorKind.PHASE
        assert codegen.listing[0].diagnostics == ["Size changed between passes"]
        assert codegen.listing[0].code == b""
        assert codegen.symbols.value_of("X") == 3
        assert codegen.image.segments() == [(2, b"\xC4\xC4\xC0\x00\x03")]

    def test_dc_string_upper_cased(self):
        """String data is stored in upper case."""
        codegen = generate(["DC T'ab'", "END"])
        assert codegen.image.segments() == [(0, b"AB")]


# =============================================================================
# Listing Tests
# =============================================================================

class TestListingLines:
    """Test the per-line results of pass 2."""

    def test_one_line_per_source_line(self):
        """Every source line gets a listing line."""
        codegen = generate(["NOP", "", ".. comment", "SEQ", "END"])
        assert [l.line_number for l in codegen.listing] == [1, 2, 3, 4, 5]
        assert codegen.listing[2].source == ".. comment"

    def test_blank_line_takes_previous_end_address(self):
        """A blank line shows the address after the previous line."""
        codegen = generate(["NOP", "", "SEQ", "END"])
        assert codegen.listing[1].address == 1
        assert codegen.listing[1].code == b""

    def test_blank_line_after_org(self):
        """A blank line after ORG shows the new address."""
        codegen = generate(["ORG #0100", "", "NOP", "END"])
        assert codegen.listing[0].address == 0x0000
        assert codegen.listing[1].address == 0x0100
        assert codegen.listing[2].address == 0x0100

    def test_address_of_first_statement(self):
        """A listing line shows the address of its first statement."""
        codegen = generate(["NOP; ORG #0100; SEQ", "END"])
        assert codegen.listing[0].address == 0x0000
        assert codegen.listing[0].code == b"\xC4\x7B"


# =============================================================================
# Pass 2 Repetition Tests
# =============================================================================

class TestPass2Repetition:
    """Test that pass 2 depends only on the symbol table and the source."""

    def test_rerun_pass2(self):
        """Running pass 2 again gives the same result."""
        codegen = generate([
            "COUNT = LATER",
            "START: LDI A.0(COUNT)",
            "       BR START",
            "       LBR NOWHERE",
            "LATER: DC T'OK', A(START)",
            "       END",
        ])
        first = snapshot(codegen)
        codegen.run_pass2()
        assert snapshot(codegen) == first

    def test_pass2_on_seeded_table(self):
        """Pass 2 can run on a symbol table filled beforehand."""
        context = AssemblyContext()
        context.symbols.define("TARGET", 0x0042)
        codegen = CodeGenerator(context)
        codegen.load(["L: LDI A.0(TARGET)", "LBR TARGET", "END"])

        codegen.run_pass2()
        first = snapshot(codegen)
        assert codegen.image.to_bytes() == b"\xF8\x42\xC0\x00\x42"
        assert codegen.symbols.value_of("L") == 0

        codegen.run_pass2()
        assert snapshot(codegen) == first


# =============================================================================
# Object Image Tests
# =============================================================================

class TestObjectImage:
    """Test object image chunks."""

    def test_contiguous_merged(self):
        """Adjacent emissions merge into one chunk."""
        image = ObjectImage()
        image.emit(0x0100, b"\x01")
        image.emit(0x0101, b"\x02\x03")
        assert image.segments() == [(0x0100, b"\x01\x02\x03")]

    def test_gap_starts_new_chunk(self):
        """A gap in addresses starts a new chunk."""
        image = ObjectImage()
        image.emit(0x0100, b"\x01")
        image.emit(0x0200, b"\x02")
        assert len(image.segments()) == 2
        assert image.start == 0x0100
        assert image.end == 0x0201

    def test_fill_byte(self):
        """Gaps are filled with the given byte."""
        image = ObjectImage()
        image.emit(0x0000, b"\x01")
        image.emit(0x0003, b"\x02")
        assert image.to_bytes(0xFF) == b"\x01\xFF\xFF\x02"

    def test_empty(self):
        """An empty image flattens to no bytes."""
        image = ObjectImage()
        image.emit(0, b"")
        assert not image
        assert image.to_bytes() == b""
        assert image.start == 0
