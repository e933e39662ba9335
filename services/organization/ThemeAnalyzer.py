"""Derives a name, category and keywords for a group of files."""

import re
from collections import Counter

from shared.models.document import ROOT_FOLDER
from shared.models.embedding import FileEmbeddingView
from shared.models.organization import ClusterCategory, ClusterTheme

CONTENT_PREVIEW_CHARS = 200
CONTENT_WEIGHT = 1
FILENAME_WEIGHT = 2
MIN_KEYWORD_LENGTH = 4
MAX_KEYWORDS = 3
KEYWORD_STOPLIST = frozenset({"file", "document", "untitled"})

CATEGORY_PATTERNS: dict[ClusterCategory, tuple[str, ...]] = {
    ClusterCategory.WORK: ("meeting", "report", "presentation", "budget", "project", "proposal", "work", "business", "company"),
    ClusterCategory.PERSONAL: ("photo", "vacation", "family", "personal", "diary", "journal", "home", "life"),
    ClusterCategory.MEDIA: ("image", "video", "audio", "photo", ".jpg", ".png", ".mp4", "media", "picture"),
    ClusterCategory.DOCUMENTS: ("document", "pdf", "doc", "text", "notes", "manual", "paper", "report"),
    ClusterCategory.ARCHIVE: ("old", "backup", "archive", "2020", "2021", "2022", "previous"),
}

_NON_WORD = re.compile(r"[\W_]+")


class ThemeAnalyzer:
    """Names groups of files by filename keywords and a content category.

    Fully deterministic: the same members always produce the same theme.
    """

    def analyze(self, files: list[FileEmbeddingView]) -> ClusterTheme:
        file_names = [f.file_name for f in files]
        category = self.categorize(file_names, [f.content for f in files])
        keywords = self.extract_keywords(file_names)

        if keywords:
            primary = keywords[0].capitalize()
            name, folder_name = f"{primary} Collection", primary
        else:
            label = category.value.capitalize()
            name, folder_name = f"{label} Files", label

        return ClusterTheme(
            name=name,
            description=f"Collection of {category.value} files",
            folder_name=folder_name,
            category=category,
            keywords=keywords,
        )

    def score_categories(self, file_names: list[str], contents: list[str]) -> dict[ClusterCategory, int]:
        """Score each category by keyword hits in content previews and filenames."""
        preview = " ".join(content[:CONTENT_PREVIEW_CHARS] for content in contents).lower()
        names = [name.lower() for name in file_names]

        scores: dict[ClusterCategory, int] = {}
        for category, patterns in CATEGORY_PATTERNS.items():
            score = 0
            for pattern in patterns:
                if pattern in preview:
                    score += CONTENT_WEIGHT
                if any(pattern in name for name in names):
                    score += FILENAME_WEIGHT
            scores[category] = score
        return scores

    def categorize(self, file_names: list[str], contents: list[str]) -> ClusterCategory:
        """Highest scoring category, or mixed when nothing matched.

        A tie for first place goes to the category declared first in
        CATEGORY_PATTERNS.
        """
        scores = self.score_categories(file_names, contents)
        best = max(scores.values(), default=0)
        if best == 0:
            return ClusterCategory.MIXED
        return next(category for category, score in scores.items() if score == best)

    def extract_keywords(self, file_names: list[str]) -> list[str]:
        """Return up to three filename tokens shared by a good part of the files.

        A token qualifies when it appears at least max(2, 30% of the files)
        times. Ties in frequency keep first-seen order.
        """
        counts: Counter[str] = Counter()
        for name in file_names:
            for token in _NON_WORD.sub(" ", name.lower()).split():
                if len(token) >= MIN_KEYWORD_LENGTH and token not in KEYWORD_STOPLIST:
                    counts[token] += 1

        threshold = max(2, 0.3 * len(file_names))
        # Counter preserves insertion order and sorted() is stable
        frequent = [(token, count) for token, count in counts.items() if count >= threshold]
        frequent.sort(key=lambda item: item[1], reverse=True)
        return [token for token, _ in frequent[:MAX_KEYWORDS]]

    def suggest_folder_name(self, folder_path: str, theme: ClusterTheme) -> str:
        if not folder_path or folder_path == ROOT_FOLDER:
            return theme.folder_name
        return f"{folder_path.rstrip('/').split('/')[-1]} - Organized"
