"""
Static question bank and question selection for trivia sessions.
"""
import logging
import random
from typing import Dict, List, Mapping, Optional, Sequence, Union

from .models import Difficulty, Question

logger = logging.getLogger(__name__)


def _q(text: str, options: Sequence[str], correct_answer: str) -> Question:
    return Question(text, tuple(options), correct_answer)


BUILTIN_QUESTIONS: Dict[str, List[Question]] = {
    Difficulty.EASY.value: [
        _q("What is the capital of France?", ["Paris", "London", "Berlin", "Rome"], "Paris"),
        _q("What is 2 + 2?", ["3", "4", "5", "6"], "4"),
        _q("How many continents are there?", ["5", "6", "7", "8"], "7"),
        _q("What is the largest ocean on Earth?", ["Atlantic", "Pacific", "Indian", "Arctic"], "Pacific"),
        _q("What is the chemical formula of water?", ["H2O", "CO2", "NaCl", "O2"], "H2O"),
        _q("What is the largest planet in our solar system?", ["Mars", "Jupiter", "Venus", "Saturn"], "Jupiter"),
        _q("How many legs does a spider have?", ["6", "8", "10", "12"], "8"),
        _q("What colour is a ripe apple?", ["Green", "Red", "Yellow", "Purple"], "Red"),
        _q("What is the opposite of black?", ["White", "Red", "Blue", "Green"], "White"),
        _q("What is the highest mountain in the world?", ["K2", "Kangchenjunga", "Mount Everest", "Lhotse"], "Mount Everest"),
        _q("What is the capital of Spain?", ["Madrid", "Barcelona", "Valencia", "Seville"], "Madrid"),
        _q("How many days are there in a week?", ["5", "6", "7", "8"], "7"),
        _q("Which river flows through London?", ["Thames", "Seine", "Danube", "Rhine"], "Thames"),
        _q("What currency is used in the United States?", ["Dollar", "Euro", "Pound", "Yen"], "Dollar"),
        _q("What is the largest hot desert in the world?", ["Sahara", "Gobi", "Arabian", "Kalahari"], "Sahara"),
    ],
    Difficulty.NORMAL.value: [
        _q("Which is the biggest planet?", ["Earth", "Mars", "Jupiter", "Venus"], "Jupiter"),
        _q("What is the atomic number of oxygen?", ["6", "7", "8", "9"], "8"),
        _q("Who painted the Mona Lisa?", ["Michelangelo", "Leonardo da Vinci", "Raphael", "Donatello"], "Leonardo da Vinci"),
        _q("What is the capital of Italy?", ["Rome", "Milan", "Venice", "Florence"], "Rome"),
        _q("Which mountain is the tallest on Earth?", ["K2", "Kangchenjunga", "Mount Everest", "Lhotse"], "Mount Everest"),
        _q("What is the second largest planet in our solar system?", ["Mars", "Jupiter", "Venus", "Saturn"], "Saturn"),
        _q("How many bones are in the adult human body?", ["206", "213", "220", "227"], "206"),
        _q("What is the chemical symbol for gold?", ["Go", "Gd", "Gl", "Au"], "Au"),
        _q("What is the largest freshwater lake by area?", ["Superior", "Victoria", "Huron", "Michigan"], "Superior"),
        _q("What currency is used in Japan?", ["Yen", "Won", "Rupee", "Dollar"], "Yen"),
        _q("What is the largest country in South America?", ["Brazil", "Argentina", "Colombia", "Peru"], "Brazil"),
        _q("How many teeth does an adult human have?", ["28", "30", "32", "34"], "32"),
        _q("What is the star closest to Earth?", ["Sun", "Sirius", "Alpha Centauri", "Proxima Centauri"], "Sun"),
        _q("What is the smallest country in the world?", ["Monaco", "Nauru", "Tuvalu", "Vatican City"], "Vatican City"),
        _q("What is the longest river in the world?", ["Nile", "Amazon", "Yangtze", "Mississippi"], "Nile"),
    ],
    Difficulty.HARD.value: [
        _q("Who wrote '1984'?", ["Orwell", "Huxley", "Bradbury", "Asimov"], "Orwell"),
        _q("In E=mc^2, what does 'c' stand for?", ["Charge", "Speed of light", "Current", "Constant"], "Speed of light"),
        _q("What is the speed of light in a vacuum?", ["299,792,458 m/s", "300,000,000 m/s", "250,000,000 m/s", "200,000,000 m/s"], "299,792,458 m/s"),
        _q("What is the largest country in the world by area?", ["Russia", "China", "USA", "Canada"], "Russia"),
        _q("What is the currency of Japan?", ["Yen", "Won", "Rupee", "Dollar"], "Yen"),
        _q("Who was the first human to travel to space?", ["Neil Armstrong", "Buzz Aldrin", "Yuri Gagarin", "John Glenn"], "Yuri Gagarin"),
        _q("What is the largest moon of Saturn?", ["Titan", "Enceladus", "Mimas", "Tethys"], "Titan"),
        _q("What is the most abundant element in the universe?", ["Hydrogen", "Helium", "Oxygen", "Carbon"], "Hydrogen"),
        _q("What process do plants use to turn light into chemical energy?", ["Photosynthesis", "Respiration", "Digestion", "Excretion"], "Photosynthesis"),
        _q("What force keeps objects from floating away from Earth?", ["Gravity", "Magnetism", "Friction", "Buoyancy"], "Gravity"),
        _q("Which theory describes the movement of Earth's continents?", ["Plate tectonics", "Continental drift", "Seafloor spreading", "Subduction"], "Plate tectonics"),
        _q("What causes the tides on Earth?", ["Gravity", "Magnetism", "Friction", "Buoyancy"], "Gravity"),
        _q("Which galaxy contains our solar system?", ["Milky Way", "Andromeda", "Triangulum", "Sombrero"], "Milky Way"),
        _q("What event is believed to have started the universe?", ["Big Bang", "Big Crunch", "Steady State", "Inflation"], "Big Bang"),
        _q("What is the study of stars and other celestial bodies called?", ["Astronomy", "Astrology", "Cosmology", "Physics"], "Astronomy"),
    ],
}


def _difficulty_key(difficulty: Union[Difficulty, str]) -> str:
    if isinstance(difficulty, Difficulty):
        return difficulty.value
    return str(difficulty)


class QuestionBank:
    """Read-only mapping from difficulty to questions, with random sampling."""

    def __init__(self, questions: Optional[Mapping[str, Sequence[Question]]] = None):
        """
        Initialize the bank.

        Args:
            questions: Mapping of difficulty value to questions. The built-in
                bank is used when omitted.
        """
        source = BUILTIN_QUESTIONS if questions is None else questions
        self._questions: Dict[str, List[Question]] = {
            _difficulty_key(key): list(value) for key, value in source.items()
        }

    def get_questions(self, difficulty: Union[Difficulty, str]) -> List[Question]:
        """
        Get a copy of the fixed question list for a difficulty.

        Returns:
            The questions in bank order, or an empty list for an
            unrecognized difficulty
        """
        return list(self._questions.get(_difficulty_key(difficulty), []))

    def available_count(self, difficulty: Union[Difficulty, str]) -> int:
        return len(self._questions.get(_difficulty_key(difficulty), []))

    def difficulties(self) -> List[str]:
        return list(self._questions.keys())

    def select_questions(self, difficulty: Union[Difficulty, str], count: int) -> List[Question]:
        """
        Select a random set of questions for a session.

        Args:
            difficulty: Difficulty level or its string value
            count: Number of questions wanted

        Returns:
            A shuffled list of at most ``count`` distinct questions. Empty if
            the difficulty is unknown or ``count`` is less than 1.
        """
        questions = self.get_questions(difficulty)
        if not questions:
            logger.warning(f"No questions available for difficulty {difficulty!r}")
            return []

        selected = self.limit_question_count(self.shuffle_questions(questions), count)
        logger.debug(
            f"Selected {len(selected)} of {len(questions)} questions for difficulty {difficulty!r}"
        )
        return selected

    def shuffle_questions(self, questions: List[Question]) -> List[Question]:
        """
        Shuffle questions randomly.

        Args:
            questions: List of questions to shuffle

        Returns:
            New list with questions in random order
        """
        shuffled = questions.copy()
        random.shuffle(shuffled)
        return shuffled

    def limit_question_count(self, questions: List[Question], count: int) -> List[Question]:
        """
        Limit the number of questions to the specified count.

        Note:
            If count is greater than available questions, returns all questions.
            If count is less than 1, returns empty list.
        """
        if count < 1:
            return []

        return questions[:count]


_default_bank = QuestionBank()


def select_questions(difficulty: Union[Difficulty, str], count: int) -> List[Question]:
    """Select questions from the built-in bank."""
    return _default_bank.select_questions(difficulty, count)
