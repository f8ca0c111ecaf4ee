"""
Question bank loading, validation and selection for match sessions.
"""
import json
import logging
import os
import random
from pathlib import Path
from typing import Any, Dict, List, Optional

from .models import MatchSettings, Question

SAMPLE_BANK_NAME = "sample"

SAMPLE_QUESTIONS = [
    {
        "id": 1,
        "question": "What is the derivative of x²?",
        "options": ["2x", "x", "2", "x²"],
        "correct_answer": 0,
        "subject": "Mathematics",
        "difficulty": "Easy",
        "points": 100
    },
    {
        "id": 2,
        "question": "Which element has the chemical symbol 'Au'?",
        "options": ["Silver", "Gold", "Aluminum", "Argon"],
        "correct_answer": 1,
        "subject": "Chemistry",
        "difficulty": "Medium",
        "points": 150
    },
    {
        "id": 3,
        "question": "Who wrote 'Romeo and Juliet'?",
        "options": ["Charles Dickens", "William Shakespeare", "Jane Austen", "Mark Twain"],
        "correct_answer": 1,
        "subject": "English",
        "difficulty": "Easy",
        "points": 100
    },
    {
        "id": 4,
        "question": "What is the acceleration due to gravity on Earth?",
        "options": ["9.8 m/s²", "10 m/s²", "8.9 m/s²", "11.2 m/s²"],
        "correct_answer": 0,
        "subject": "Physics",
        "difficulty": "Medium",
        "points": 150
    },
    {
        "id": 5,
        "question": "Which organ produces insulin?",
        "options": ["Liver", "Kidney", "Pancreas", "Heart"],
        "correct_answer": 2,
        "subject": "Biology",
        "difficulty": "Medium",
        "points": 150
    }
]

MAX_BANK_FILE_SIZE = 10 * 1024 * 1024  # 10MB


class QuestionBank:
    """Manages loading and validation of JSON question bank files."""

    def __init__(self, question_directory: str = "./questions/"):
        """
        Initialize QuestionBank with question directory path.

        Args:
            question_directory: Path to directory containing JSON question banks
        """
        self.question_directory = Path(question_directory)
        self.loaded_banks: Dict[str, List[Question]] = {}
        self.logger = logging.getLogger(__name__)
        self.load_errors: List[str] = []
        self.sample_bank_active = False

    def load_banks(self) -> Dict[str, List[Question]]:
        """
        Load all JSON files from the question directory.

        Falls back to the built-in sample bank when nothing can be loaded.

        Returns:
            Dictionary mapping bank names to lists of Question objects
        """
        self.loaded_banks.clear()
        self.load_errors.clear()
        self.sample_bank_active = False

        if not self.question_directory.is_dir():
            self.logger.warning(f"Question directory not found: {self.question_directory}")
            self.load_errors.append(f"Question directory not found: {self.question_directory}")
            return self._load_sample_bank()

        try:
            json_files = sorted(self.question_directory.glob("*.json"))
        except OSError as e:
            self.logger.error(f"Failed to scan {self.question_directory}: {e}")
            self.load_errors.append(f"Failed to scan {self.question_directory}: {e}")
            return self._load_sample_bank()

        if not json_files:
            self.logger.warning(f"No JSON files found in {self.question_directory}")
            self.load_errors.append(f"No question files found in {self.question_directory}")
            return self._load_sample_bank()

        successful_loads = 0
        for json_file in json_files:
            load_result = self._load_bank_file_safely(json_file)
            if load_result['success']:
                successful_loads += 1
            else:
                self.load_errors.append(f"{json_file.name}: {load_result['error']}")

        if successful_loads == 0:
            self.logger.error("No question files could be loaded successfully")
            self.load_errors.append("All question files failed to load")
            return self._load_sample_bank()

        self.logger.info(f"Successfully loaded {successful_loads} question banks")
        if self.load_errors:
            self.logger.warning(f"Encountered {len(self.load_errors)} loading errors")

        return self.loaded_banks

    def validate_bank_structure(self, data: Any) -> bool:
        """
        Validate that JSON data has the correct question bank structure.

        Expected structure:
        {
            "questions": [
                {
                    "id": int,
                    "question": str,
                    "options": [str, str, ...],   # at least 2
                    "correct_answer": int,        # index into options
                    "subject": str,               # Optional
                    "difficulty": str,            # Optional
                    "points": int                 # Optional, positive
                }
            ]
        }

        Args:
            data: Parsed JSON data to validate

        Returns:
            True if structure is valid, False otherwise
        """
        if not isinstance(data, dict):
            self.logger.error("Question bank must be a JSON object")
            return False

        questions = data.get("questions")
        if not isinstance(questions, list):
            self.logger.error("Question bank must contain a 'questions' array")
            return False

        if not questions:
            self.logger.error("Questions array cannot be empty")
            return False

        seen_ids = set()
        for i, item in enumerate(questions):
            if not isinstance(item, dict):
                self.logger.error(f"Question {i} must be an object")
                return False

            for key, expected in (("id", int), ("question", str), ("options", list), ("correct_answer", int)):
                if key not in item:
                    self.logger.error(f"Question {i} missing '{key}' field")
                    return False
                if not isinstance(item[key], expected) or isinstance(item[key], bool):
                    self.logger.error(f"Question {i} '{key}' field must be {expected.__name__}")
                    return False

            options = item["options"]
            if len(options) < 2 or not all(isinstance(o, str) for o in options):
                self.logger.error(f"Question {i} needs at least 2 string options")
                return False

            if not 0 <= item["correct_answer"] < len(options):
                self.logger.error(f"Question {i} 'correct_answer' is out of range")
                return False

            points = item.get("points", 100)
            if not isinstance(points, int) or isinstance(points, bool) or points <= 0:
                self.logger.error(f"Question {i} 'points' must be a positive integer")
                return False

            if item["id"] in seen_ids:
                self.logger.error(f"Question {i} has duplicate id {item['id']}")
                return False
            seen_ids.add(item["id"])

        return True

    def _parse_questions(self, bank_data: dict) -> List[Question]:
        """Parse validated bank data into Question objects."""
        return [
            Question(
                id=item["id"],
                text=item["question"],
                options=tuple(item["options"]),
                correct_index=item["correct_answer"],
                subject=item.get("subject", "General"),
                difficulty=item.get("difficulty", "Easy"),
                points=item.get("points", 100)
            )
            for item in bank_data["questions"]
        ]

    def _load_bank_file_safely(self, json_file: Path) -> Dict[str, Any]:
        """
        Load a single question bank file.

        Args:
            json_file: Path to the JSON file to load

        Returns:
            Dictionary with success status and error message if applicable
        """
        try:
            if not os.access(json_file, os.R_OK):
                return {'success': False, 'error': "Permission denied: Cannot read file"}

            file_size = json_file.stat().st_size
            if file_size > MAX_BANK_FILE_SIZE:
                return {
                    'success': False,
                    'error': f"File too large ({file_size / 1024 / 1024:.1f}MB)"
                }

            with open(json_file, 'r', encoding='utf-8') as f:
                data = json.load(f)

            if not self.validate_bank_structure(data):
                return {'success': False, 'error': "Invalid question bank structure"}

            questions = self._parse_questions(data)
            bank_name = json_file.stem
            self.loaded_banks[bank_name] = questions
            self.logger.info(f"Loaded question bank '{bank_name}' with {len(questions)} questions")
            return {'success': True}

        except json.JSONDecodeError as e:
            self.logger.error(f"Invalid JSON in {json_file}: {e}")
            return {'success': False, 'error': f"Invalid JSON: {e}"}
        except OSError as e:
            self.logger.error(f"Failed to read question file {json_file}: {e}")
            return {'success': False, 'error': f"System error: {e}"}

    def _load_sample_bank(self) -> Dict[str, List[Question]]:
        self.loaded_banks[SAMPLE_BANK_NAME] = self.get_sample_questions()
        self.sample_bank_active = True
        self.logger.warning("Using built-in sample question bank")
        return self.loaded_banks

    @staticmethod
    def get_sample_questions() -> List[Question]:
        """Get the built-in five-question sample bank."""
        return [
            Question(
                id=item["id"],
                text=item["question"],
                options=tuple(item["options"]),
                correct_index=item["correct_answer"],
                subject=item["subject"],
                difficulty=item["difficulty"],
                points=item["points"]
            )
            for item in SAMPLE_QUESTIONS
        ]

    def get_available_banks(self) -> List[str]:
        return list(self.loaded_banks.keys())

    def get_questions(self, bank_name: str) -> Optional[List[Question]]:
        """
        Retrieve questions for a specific bank.

        Returns:
            List of Question objects, or None if the bank is not loaded
        """
        questions = self.loaded_banks.get(bank_name)
        return list(questions) if questions is not None else None

    def get_subjects(self, bank_name: str) -> List[str]:
        """Get the distinct subjects in a bank, in first-seen order."""
        subjects: List[str] = []
        for question in self.loaded_banks.get(bank_name, []):
            if question.subject not in subjects:
                subjects.append(question.subject)
        return subjects

    def get_load_errors(self) -> List[str]:
        return self.load_errors.copy()

    def has_load_errors(self) -> bool:
        return len(self.load_errors) > 0

    def get_loading_summary(self) -> Dict[str, Any]:
        """
        Get a summary of the last load operation.

        Returns:
            Dictionary with loading statistics and status
        """
        return {
            'total_banks': len(self.loaded_banks),
            'has_errors': self.has_load_errors(),
            'error_count': len(self.load_errors),
            'errors': self.get_load_errors(),
            'sample_active': self.sample_bank_active,
            'question_directory': str(self.question_directory),
            'available_banks': self.get_available_banks()
        }

    def select_questions(self, questions: List[Question], settings: MatchSettings) -> List[Question]:
        """
        Select and order questions for a match.

        Filters by subject, shuffles when random order is enabled, then limits
        the count.

        Args:
            questions: List of available questions
            settings: Match settings

        Returns:
            List of selected and ordered questions, possibly empty after filtering

        Raises:
            ValueError: If questions list is empty
        """
        if not questions:
            raise ValueError("Cannot select questions from empty list")

        selected = list(questions)

        if settings.subjects:
            wanted = {s.lower() for s in settings.subjects}
            selected = [q for q in selected if q.subject.lower() in wanted]

        if settings.random_order:
            random.shuffle(selected)

        if settings.question_count is not None:
            selected = selected[:max(settings.question_count, 0)]

        return selected
