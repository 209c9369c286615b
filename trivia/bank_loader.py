"""
Loading and validation of custom question bank files.
"""
import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from .models import Difficulty, Question

OPTIONS_PER_QUESTION = 4


class BankLoader:
    """
    Loads a question bank from a JSON file.

    Expected structure:
    {
        "Easy": [
            {
                "question": str,
                "options": [str, str, str, str],
                "answer": str   # must be one of the options
            }
        ],
        "Normal": [...],
        "Hard": [...]
    }
    """

    def __init__(self):
        self.logger = logging.getLogger(__name__)
        self.load_errors: List[str] = []

    def load(self, file_path: Union[str, Path]) -> Optional[Dict[str, List[Question]]]:
        """
        Load and validate a bank file.

        Args:
            file_path: Path to the JSON file

        Returns:
            Mapping of difficulty value to questions, or None if the file
            could not be read or failed validation
        """
        self.load_errors.clear()
        path = Path(file_path)

        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            return self._fail(f"Invalid JSON in {path}: {e}")
        except FileNotFoundError:
            return self._fail(f"Question bank file not found: {path}")
        except OSError as e:
            return self._fail(f"Failed to read question bank file {path}: {e}")

        if not self.validate_bank_structure(data):
            self.logger.error(f"Invalid question bank structure in {path}")
            return None

        bank = self._parse_questions(data)
        self.logger.info(
            f"Loaded question bank from {path}: "
            + ", ".join(f"{key}={len(questions)}" for key, questions in bank.items())
        )
        return bank

    def validate_bank_structure(self, data: Any) -> bool:
        """
        Validate that parsed JSON has the question bank structure.

        Problems are logged and recorded in ``load_errors``.

        Returns:
            True if structure is valid, False otherwise
        """
        if not isinstance(data, dict):
            return self._invalid("Question bank must be a JSON object")

        if not data:
            return self._invalid("Question bank cannot be empty")

        known = {d.value for d in Difficulty}
        for difficulty, entries in data.items():
            if difficulty not in known:
                return self._invalid(
                    f"Unknown difficulty {difficulty!r}, expected one of {', '.join(sorted(known))}"
                )

            if not isinstance(entries, list):
                return self._invalid(f"{difficulty}: value must be an array")

            for i, entry in enumerate(entries):
                if not self._validate_entry(difficulty, i, entry):
                    return False

        return True

    def _validate_entry(self, difficulty: str, index: int, entry: Any) -> bool:
        where = f"{difficulty} question {index}"
        if not isinstance(entry, dict):
            return self._invalid(f"{where} must be an object")

        for key in ("question", "answer"):
            if key not in entry:
                return self._invalid(f"{where} missing '{key}' field")
            if not isinstance(entry[key], str):
                return self._invalid(f"{where} '{key}' field must be a string")

        options = entry.get("options")
        if not isinstance(options, list) or not all(isinstance(o, str) for o in options):
            return self._invalid(f"{where} 'options' field must be an array of strings")

        if len(options) != OPTIONS_PER_QUESTION:
            return self._invalid(f"{where} must have exactly {OPTIONS_PER_QUESTION} options")

        if options.count(entry["answer"]) != 1:
            return self._invalid(f"{where} answer must match exactly one option")

        return True

    def _parse_questions(self, data: Dict[str, list]) -> Dict[str, List[Question]]:
        return {
            difficulty: [
                Question(
                    text=entry["question"],
                    options=tuple(entry["options"]),
                    correct_answer=entry["answer"]
                )
                for entry in entries
            ]
            for difficulty, entries in data.items()
        }

    def _invalid(self, message: str) -> bool:
        self.logger.error(message)
        self.load_errors.append(message)
        return False

    def _fail(self, message: str) -> None:
        self._invalid(message)
        return None

    def has_load_errors(self) -> bool:
        return bool(self.load_errors)
