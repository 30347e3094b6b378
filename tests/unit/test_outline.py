"""
Unit Tests for the Document Outline

Section order and content shared by all three renderers.
"""
from plantao.core.reports.formatters import NO_IMAGES_TEXT, NO_OCCURRENCES_TEXT
from plantao.core.reports.outline import (
    SECTION_CONCLUSION,
    SECTION_GENERAL,
    SECTION_IMAGES,
    SECTION_OBSERVATIONS,
    SECTION_OCCURRENCES,
    SECTION_SIGNATURES,
    FieldTable,
    Figure,
    Heading,
    Signature,
    Text,
    Title,
    build_outline,
)


def _headings(blocks):
    return [b.text for b in blocks if isinstance(b, Heading)]


class TestOutline:

    def test_section_order(self, full_report):
        """Test blocks follow document order."""
        assert _headings(build_outline(full_report)) == [
            SECTION_GENERAL,
            SECTION_OCCURRENCES,
            SECTION_IMAGES,
            SECTION_OBSERVATIONS,
            SECTION_CONCLUSION,
            SECTION_SIGNATURES,
        ]

    def test_title_first(self, sample_report):
        """Test the title is the first block."""
        title = build_outline(sample_report)[0]
        assert isinstance(title, Title)
        assert title.text == "RELATÓRIO DE PLANTÃO 01/2025"
        assert title.subtitle == "15/01/2025"

    def test_general_table(self, sample_report):
        """Test the general data table rows."""
        tables = [b for b in build_outline(sample_report) if isinstance(b, FieldTable)]
        general = next(t for t in tables if t.kind == "general")
        assert [r.label for r in general.rows] == [
            "Início do Plantão", "Fim do Plantão", "Nome da Equipe", "Cartório Responsável",
        ]
        assert general.rows[2].value == "Equipe Alpha"
        officers = next(t for t in tables if t.kind == "officers")
        assert officers.rows[0].label == "Policiais da Equipe"
        assert officers.rows[0].lines == ("João Silva - Agente",)

    def test_stale_occurrences_hidden_when_flag_off(self, full_report):
        """Test occurrences are hidden once the flag is off."""
        full_report.update(has_occurrences=False)
        blocks = build_outline(full_report)
        assert not [b for b in blocks if isinstance(b, FieldTable) and b.kind == "occurrence"]
        assert Text(NO_OCCURRENCES_TEXT, italic=True) in blocks

    def test_one_table_per_occurrence(self, full_report):
        """Test one table per occurrence."""
        tables = [b for b in build_outline(full_report) if isinstance(b, FieldTable) and b.kind == "occurrence"]
        assert len(tables) == 2
        assert tables[0].rows[0].value == "RAI-123456"

    def test_figures_and_default_caption(self, full_report):
        """Test figures and the default caption."""
        figures = [b for b in build_outline(full_report) if isinstance(b, Figure)]
        assert [f.caption for f in figures] == ["Local do sinistro", "Imagem 2"]
        assert [f.index for f in figures] == [1, 2]

    def test_no_images_sentence(self, sample_report):
        """Test the no-images sentence."""
        assert Text(NO_IMAGES_TEXT, italic=True) in build_outline(sample_report)

    def test_signatures_follow_officer_order(self, full_report):
        """Test signatures follow officer order."""
        signatures = [b for b in build_outline(full_report) if isinstance(b, Signature)]
        assert signatures == [Signature("João Silva", "Agente"), Signature("Maria Souza", "Delegado")]

    def test_zero_officers(self, sample_report):
        """Test zero officers give no signatures."""
        sample_report.remove_officer(sample_report.officers[0].id)
        blocks = build_outline(sample_report)
        assert not [b for b in blocks if isinstance(b, Signature)]
        officers = next(b for b in blocks if isinstance(b, FieldTable) and b.kind == "officers")
        assert officers.rows[0].lines == ()
