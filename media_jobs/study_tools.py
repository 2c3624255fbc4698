"""
On-demand study artifacts generated from a completed job's extracted text.

Flashcards cover a whole document, so the text is split into word chunks and
each chunk is one generation call. A failing chunk is skipped and counted;
generation stops once ``max_failed_chunks`` chunks have failed. Whatever
succeeded is returned together with the failure count.
"""

import logging
from dataclasses import dataclass, field

from .exceptions import SynthesisError
from .services import TextGenerator

logger = logging.getLogger(__name__)

DIFFICULTIES = {
    "easy": "Easy",
    "medium": "Medium",
    "hard": "Hard",
    "exam": (
        "Exam level: complex, analytical questions in the style of a final "
        "examination on this material"
    ),
}

CATEGORIES_SCHEMA = {"type": "ARRAY", "items": {"type": "STRING"}}

QUIZ_QUESTION_SCHEMA = {
    "type": "ARRAY",
    "items": {
        "type": "OBJECT",
        "properties": {
            "questionText": {"type": "STRING"},
            "options": {"type": "ARRAY", "items": {"type": "STRING"}},
            "correctOptionIndex": {"type": "INTEGER"},
            "explanation": {"type": "STRING"},
        },
        "required": ["questionText", "options", "correctOptionIndex", "explanation"],
    },
}

FLASHCARD_SCHEMA = {
    "type": "ARRAY",
    "items": {
        "type": "OBJECT",
        "properties": {"front": {"type": "STRING"}, "back": {"type": "STRING"}},
        "required": ["front", "back"],
    },
}

CATEGORIES_PROMPT = (
    "Analyze the following text extracted from class notes and identify the main "
    "topics or chapters. Return these topics as a JSON array of strings. "
    "Only return the JSON array. Text:\n\n{text}"
)

QUIZ_PROMPT = (
    "Using only information from the provided text and focusing on the category "
    '"{category}", generate {count} multiple-choice questions of {difficulty} '
    "difficulty. Each question is a JSON object with \"questionText\" (string), "
    "\"options\" (array of 4 strings), \"correctOptionIndex\" (0 to 3) and "
    "\"explanation\" (why the correct answer is correct, based on the text). "
    "Return a JSON array of these objects only.\n\nText context:\n---\n{text}\n---"
)

FLASHCARD_PROMPT = (
    "Create study flashcards covering every key concept, definition and fact in "
    "the following text segment. Each flashcard is a JSON object with \"front\" "
    "(a concise question or term) and \"back\" (a concise answer drawn only from "
    "this segment). Return a single JSON array of flashcards only.\n\n"
    "Text segment:\n---\n{text}\n---"
)


def generate_categories(text: str, generator: TextGenerator) -> list[str]:
    result = generator.generate_json(CATEGORIES_PROMPT.format(text=text), CATEGORIES_SCHEMA)
    if not isinstance(result, list):
        raise SynthesisError("Expected a JSON array of categories")
    return [str(c).strip() for c in result if str(c).strip()]


def _valid_question(q) -> bool:
    if not isinstance(q, dict):
        return False
    options = q.get("options")
    index = q.get("correctOptionIndex")
    return (
        isinstance(q.get("questionText"), str)
        and isinstance(options, list)
        and len(options) == 4
        and all(isinstance(o, str) for o in options)
        and isinstance(index, int)
        and not isinstance(index, bool)
        and 0 <= index <= 3
        and isinstance(q.get("explanation"), str)
    )


def generate_quiz_questions(text: str, category: str, difficulty: str, count: int, generator: TextGenerator) -> list[dict]:
    if difficulty not in DIFFICULTIES:
        raise ValueError(f"Unknown difficulty: {difficulty!r}")
    prompt = QUIZ_PROMPT.format(
        category=category, count=count, difficulty=DIFFICULTIES[difficulty], text=text
    )
    result = generator.generate_json(prompt, QUIZ_QUESTION_SCHEMA)
    if not isinstance(result, list):
        raise SynthesisError("Expected a JSON array of questions")

    questions = []
    for q in result:
        if not _valid_question(q):
            logger.warning("Dropping malformed quiz question: %r", q)
            continue
        questions.append({
            "questionText": q["questionText"],
            "options": list(q["options"]),
            "correctOptionIndex": q["correctOptionIndex"],
            "explanation": q["explanation"],
            "category": category,
            "difficulty": difficulty,
        })
    if not questions:
        raise SynthesisError("Generation returned no usable questions")
    return questions[:count]


def chunk_words(text: str, size: int) -> list[str]:
    words = text.split()
    return [" ".join(words[i:i + size]) for i in range(0, len(words), size)]


@dataclass
class FlashcardBatch:
    flashcards: list[dict] = field(default_factory=list)
    chunks: int = 0
    failed_chunks: int = 0

    @property
    def partial(self) -> bool:
        return self.failed_chunks > 0


def generate_flashcards(text: str, generator: TextGenerator, *, chunk_size: int, max_failed_chunks: int) -> FlashcardBatch:
    chunks = chunk_words(text, chunk_size)
    batch = FlashcardBatch(chunks=len(chunks))

    for idx, chunk in enumerate(chunks, start=1):
        try:
            result = generator.generate_json(FLASHCARD_PROMPT.format(text=chunk), FLASHCARD_SCHEMA)
            if not isinstance(result, list):
                raise SynthesisError("Expected a JSON array of flashcards")
        except SynthesisError as e:
            batch.failed_chunks += 1
            logger.warning("Flashcard chunk %d/%d failed: %s", idx, len(chunks), e)
            if batch.failed_chunks >= max_failed_chunks:
                logger.error("Stopping flashcard generation after %d failed chunks", batch.failed_chunks)
                break
            continue

        for card in result:
            if isinstance(card, dict) and isinstance(card.get("front"), str) and isinstance(card.get("back"), str):
                batch.flashcards.append({"front": card["front"], "back": card["back"]})

    return batch
