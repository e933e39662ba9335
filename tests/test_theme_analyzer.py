"""Tests for cluster theme derivation."""

from services.organization.ThemeAnalyzer import ThemeAnalyzer
from shared.models.embedding import FileEmbeddingView
from shared.models.organization import ClusterCategory


def _view(name: str, content: str = "", folder_path: str = "Root") -> FileEmbeddingView:
    return FileEmbeddingView(file_id=name, file_name=name, vector=[1.0], content=content, folder_path=folder_path)


def test_keywords_split_on_underscores_and_digits():
    analyzer = ThemeAnalyzer()
    names = [f"invoice_2021_{i:02d}.pdf" for i in range(8)]

    keywords = analyzer.extract_keywords(names)

    assert keywords[0] == "invoice"
    assert "pdf" not in keywords


def test_keywords_need_enough_occurrences():
    analyzer = ThemeAnalyzer()
    names = ["budget plan.txt", "budget review.txt", "notes.txt", "misc.txt", "agenda.txt", "roadmap.txt", "zeta.txt"]

    # 2 of 7 files is below 30% of 7 (2.1)
    assert analyzer.extract_keywords(names) == []


def test_keywords_drop_stoplist_and_short_tokens():
    analyzer = ThemeAnalyzer()
    names = ["untitled document file abc.txt"] * 3

    assert analyzer.extract_keywords(names) == []


def test_keywords_are_capped_at_three():
    analyzer = ThemeAnalyzer()
    names = ["alpha bravo charlie delta.txt"] * 4

    assert analyzer.extract_keywords(names) == ["alpha", "bravo", "charlie"]


def test_category_filename_hits_weigh_double():
    analyzer = ThemeAnalyzer()
    category = analyzer.categorize(["vacation_photo.jpg", "family_photo.jpg"], ["", ""])

    assert category == ClusterCategory.PERSONAL


def test_category_tie_goes_to_first_declared_category():
    analyzer = ThemeAnalyzer()
    # "backup" (archive) and "meeting" (work) score two each
    assert analyzer.categorize(["backup.txt", "meeting.txt"], ["", ""]) == ClusterCategory.WORK


def test_dated_pdf_names_are_documents():
    """Documents and archive tie on "pdf" and "2021" in the names."""
    analyzer = ThemeAnalyzer()
    names = [f"invoice_2021_{i:02d}.pdf" for i in range(8)]
    contents = ["Invoice 1001. Amount due 450 USD for consulting services."] * 8

    scores = analyzer.score_categories(names, contents)

    assert scores[ClusterCategory.DOCUMENTS] == scores[ClusterCategory.ARCHIVE] == 2
    assert analyzer.categorize(names, contents) == ClusterCategory.DOCUMENTS


def test_category_without_hits_is_mixed():
    analyzer = ThemeAnalyzer()
    assert analyzer.categorize(["zzz.txt"], ["nothing to see"]) == ClusterCategory.MIXED


def test_content_preview_is_limited():
    analyzer = ThemeAnalyzer()
    content = "x" * 250 + " meeting budget project"

    scores = analyzer.score_categories(["qqq.txt"], [content])

    assert scores[ClusterCategory.WORK] == 0


def test_theme_named_after_primary_keyword():
    analyzer = ThemeAnalyzer()
    files = [_view(f"invoice_2021_{i:02d}.pdf", "Invoice document with payment notes.") for i in range(5)]

    theme = analyzer.analyze(files)

    assert theme.name == "Invoice Collection"
    assert theme.folder_name == "Invoice"
    assert theme.category == ClusterCategory.DOCUMENTS
    assert theme.description == "Collection of documents files"


def test_theme_without_keywords_uses_category():
    analyzer = ThemeAnalyzer()
    files = [_view("a.mp4", "video"), _view("b.png", "image")]

    theme = analyzer.analyze(files)

    assert theme.category == ClusterCategory.MEDIA
    assert theme.name == "Media Files"
    assert theme.folder_name == "Media"


def test_theme_is_deterministic():
    analyzer = ThemeAnalyzer()
    files = [_view(f"report_{i}.txt", "Quarterly meeting report.") for i in range(4)]

    assert analyzer.analyze(files) == analyzer.analyze(files)


def test_suggest_folder_name():
    analyzer = ThemeAnalyzer()
    theme = analyzer.analyze([_view("a.mp4", "video"), _view("b.png", "image")])

    assert analyzer.suggest_folder_name("Work/Reports", theme) == "Reports - Organized"
    assert analyzer.suggest_folder_name("Root", theme) == "Media"
