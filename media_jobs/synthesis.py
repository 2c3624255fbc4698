import logging

from .services import TextGenerator

logger = logging.getLogger(__name__)

NO_CONTENT_NOTES = "No original content text was available for note generation."

NOTES_PROMPT = (
    "Based on the following text, generate detailed notes, formatted in markdown:\n\n{text}"
)


def synthesize_notes(text: str | None, generator: TextGenerator) -> str:
    """
    Markdown notes for ``text``. Empty input yields a fixed placeholder without
    calling the generator; generator failures propagate as SynthesisError.
    """
    if not text or not text.strip():
        logger.warning("No extracted text; using placeholder notes.")
        return NO_CONTENT_NOTES
    return generator.generate(NOTES_PROMPT.format(text=text))
