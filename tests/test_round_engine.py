"""
Unit tests for the round state machine and the asyncio round engine.
"""
import asyncio
import logging
import unittest
from unittest.mock import Mock

from trivia.models import ConfigurationError, SessionConfig, SessionResult
from trivia.question_bank import BUILTIN_QUESTIONS, QuestionBank
from trivia.round_engine import (
    EnginePhase,
    Resolution,
    RoundEngine,
    RoundEngineError,
    RoundStateMachine,
    SessionInProgressError,
)
from tests.test_fixtures import AsyncTestHelpers, TestDataValidation, TestFixtures


class TestRoundStateMachine(unittest.TestCase):
    """Test cases for round transitions driven step by step."""

    def setUp(self):
        """Set up test fixtures."""
        logging.disable(logging.CRITICAL)
        self.questions = TestFixtures.create_sample_questions()[:3]
        self.config = TestFixtures.create_session_config("Easy", 3, 5)
        self.machine = RoundStateMachine(self.config, self.questions)

    def tearDown(self):
        logging.disable(logging.NOTSET)

    def _run_out_clock(self):
        """Tick the current round until it times out; return the number of ticks."""
        ticks = 0
        index = self.machine.current_index
        while self.machine.current_index == index and not self.machine.is_ended:
            self.machine.tick(index)
            ticks += 1
        return ticks

    def test_begin_enters_first_round(self):
        outcome = self.machine.begin()

        self.assertTrue(outcome.round_started)
        self.assertEqual(self.machine.phase, EnginePhase.ROUND_ACTIVE)
        self.assertEqual(len(outcome.snapshots), 1)
        snapshot = outcome.snapshots[0]
        self.assertEqual(snapshot.round_number, 1)
        self.assertEqual(snapshot.total_rounds, 3)
        self.assertEqual(snapshot.question_text, self.questions[0].text)
        self.assertEqual(snapshot.seconds_remaining, 5)
        self.assertEqual(snapshot.current_score, 0)
        self.assertEqual(snapshot.progress, 1.0)
        self.assertTrue(TestDataValidation.validate_snapshot(snapshot))

    def test_begin_twice_raises(self):
        self.machine.begin()
        with self.assertRaises(RoundEngineError):
            self.machine.begin()

    def test_begin_without_questions_ends_with_zero(self):
        machine = RoundStateMachine(self.config, [])
        outcome = machine.begin()

        self.assertTrue(outcome.ended)
        self.assertEqual(outcome.snapshots, [])
        self.assertTrue(machine.is_ended)
        self.assertEqual(machine.result, SessionResult(final_score=0, total_rounds=0))

    def test_tick_counts_down(self):
        self.machine.begin()
        outcome = self.machine.tick(0)

        self.assertEqual([s.seconds_remaining for s in outcome.snapshots], [4])
        self.assertIsNone(outcome.resolution)
        self.assertEqual(self.machine.state.seconds_remaining, 4)

    def test_timeout_resolves_round_without_score(self):
        self.machine.begin()
        for _ in range(4):
            self.machine.tick(0)
        outcome = self.machine.tick(0)

        self.assertEqual(outcome.resolution, Resolution.TIMEOUT)
        self.assertTrue(outcome.round_started)
        # the final tick of the round, then the next round's entry
        self.assertEqual([s.seconds_remaining for s in outcome.snapshots], [0, 5])
        self.assertEqual(outcome.snapshots[1].round_number, 2)
        self.assertEqual(self.machine.state.score, 0)
        self.assertFalse(self.machine.state.answered)

    def test_correct_answer_scores_and_advances(self):
        self.machine.begin()
        outcome = self.machine.answer(self.questions[0].correct_answer)

        self.assertEqual(outcome.resolution, Resolution.CORRECT)
        self.assertEqual(self.machine.state.score, 1)
        self.assertEqual(outcome.snapshots[0].round_number, 2)
        self.assertEqual(outcome.snapshots[0].current_score, 1)
        self.assertEqual(outcome.snapshots[0].seconds_remaining, 5)

    def test_incorrect_answer_advances_without_score(self):
        self.machine.begin()
        outcome = self.machine.answer(TestFixtures.wrong_option(self.questions[0]))

        self.assertEqual(outcome.resolution, Resolution.INCORRECT)
        self.assertEqual(self.machine.state.score, 0)
        self.assertEqual(self.machine.current_index, 1)

    def test_answer_matching_is_exact(self):
        self.machine.begin()
        outcome = self.machine.answer(" " + self.questions[0].correct_answer)

        self.assertEqual(outcome.resolution, Resolution.INCORRECT)
        self.assertEqual(self.machine.state.score, 0)

    def test_stale_stimuli_after_resolution_are_ignored(self):
        """Once round 1 is resolved nothing tagged for round 1 has any effect."""
        self.machine.begin()
        self.machine.answer(self.questions[0].correct_answer)
        state_before = (self.machine.current_index, self.machine.state.seconds_remaining, self.machine.state.score)

        self.assertTrue(self.machine.answer(self.questions[0].correct_answer, round_index=0).ignored)
        self.assertTrue(self.machine.tick(0).ignored)

        state_after = (self.machine.current_index, self.machine.state.seconds_remaining, self.machine.state.score)
        self.assertEqual(state_before, state_after)

    def test_answer_and_timeout_in_either_order_resolve_once(self):
        """Whichever stimulus is applied first wins, the other is a no-op."""
        question = self.questions[0]

        # Timeout first: the late answer for round 1 does not score
        machine = RoundStateMachine(self.config, self.questions)
        machine.begin()
        for _ in range(5):
            machine.tick(0)
        late = machine.answer(question.correct_answer, round_index=0)
        self.assertTrue(late.ignored)
        self.assertEqual(machine.state.score, 0)
        self.assertEqual(machine.current_index, 1)

        # Answer first: the late tick for round 1 does not touch round 2
        machine = RoundStateMachine(self.config, self.questions)
        machine.begin()
        for _ in range(4):
            machine.tick(0)
        machine.answer(question.correct_answer)
        late = machine.tick(0)
        self.assertTrue(late.ignored)
        self.assertEqual(machine.state.score, 1)
        self.assertEqual(machine.state.seconds_remaining, 5)

    def test_second_answer_in_same_round_is_ignored(self):
        machine = RoundStateMachine(self.config, self.questions)
        machine.begin()
        machine.state.answered = True

        outcome = machine.answer(self.questions[0].correct_answer, round_index=0)

        self.assertTrue(outcome.ignored)
        self.assertEqual(machine.state.score, 0)
        self.assertEqual(machine.current_index, 0)

    def test_score_grows_by_at_most_one_per_round(self):
        self.machine.begin()
        scores = [0]
        choices = [
            self.questions[0].correct_answer,
            TestFixtures.wrong_option(self.questions[1]),
            self.questions[2].correct_answer,
        ]
        for option in choices:
            self.machine.answer(option)
            scores.append(self.machine.state.score)

        self.assertEqual(scores, [0, 1, 1, 2])
        for before, after in zip(scores, scores[1:]):
            self.assertIn(after - before, (0, 1))
        self.assertEqual(self.machine.result, SessionResult(final_score=2, total_rounds=3))

    def test_session_ends_after_every_round_resolved(self):
        self.machine.begin()
        resolved = 0
        while not self.machine.is_ended:
            self._run_out_clock()
            resolved += 1

        self.assertEqual(resolved, len(self.questions))
        self.assertEqual(self.machine.state.current_index, len(self.questions))
        self.assertIsNone(self.machine.snapshot())

    def test_unanswered_rounds_take_fifteen_ticks(self):
        """Three rounds of five seconds with no answers end after fifteen ticks, score 0."""
        questions = QuestionBank().select_questions("Easy", 3)
        self.machine = RoundStateMachine(self.config, questions)
        self.machine.begin()

        total_ticks = 0
        while not self.machine.is_ended:
            total_ticks += self._run_out_clock()

        self.assertEqual(total_ticks, 15)
        self.assertEqual(self.machine.result.final_score, 0)

    def test_correct_answer_on_third_tick_of_single_round(self):
        config = SessionConfig(difficulty="Normal", round_count=1, seconds_per_round=10)
        questions = QuestionBank().select_questions(config.difficulty, config.round_count)
        machine = RoundStateMachine(config, questions)
        machine.begin()
        for _ in range(3):
            machine.tick(0)

        outcome = machine.answer(questions[0].correct_answer)

        self.assertTrue(outcome.ended)
        self.assertEqual(outcome.snapshots, [])
        self.assertEqual(machine.result.final_score, 1)
        self.assertTrue(machine.tick(0).ignored)

    def test_abandon_discards_state(self):
        self.machine.begin()
        self.machine.answer(self.questions[0].correct_answer)
        self.machine.abandon()

        self.assertTrue(self.machine.is_ended)
        self.assertTrue(self.machine.abandoned)
        self.assertIsNone(self.machine.result)
        self.assertIsNone(self.machine.state)
        self.assertTrue(self.machine.tick(1).ignored)
        self.assertTrue(self.machine.answer("4").ignored)


class TestRoundEngineConfiguration(unittest.TestCase):
    """Synchronous checks done before a session begins."""

    def setUp(self):
        logging.disable(logging.CRITICAL)
        self.engine = RoundEngine()

    def tearDown(self):
        logging.disable(logging.NOTSET)

    def test_invalid_configs_are_rejected(self):
        invalid = [
            SessionConfig(round_count=0),
            SessionConfig(round_count=-3),
            SessionConfig(seconds_per_round=0),
            SessionConfig(seconds_per_round=-1),
            SessionConfig(round_count="5"),
            SessionConfig(seconds_per_round=2.5),
            SessionConfig(round_count=True),
        ]
        for config in invalid:
            with self.assertRaises(ConfigurationError):
                self.engine.start_session(config)
            self.assertFalse(self.engine.is_running)
            self.assertEqual(self.engine.phase, EnginePhase.INITIALIZING)

    def test_configuration_error_is_value_error(self):
        self.assertTrue(issubclass(ConfigurationError, ValueError))

    def test_non_positive_tick_interval_rejected(self):
        with self.assertRaises(ConfigurationError):
            RoundEngine(tick_interval=0)

    def test_submit_answer_without_session_is_ignored(self):
        self.engine.submit_answer("anything")
        self.assertFalse(self.engine.abandon())
        self.assertIsNone(self.engine.result)


class TestRoundEngineSessions(unittest.IsolatedAsyncioTestCase):
    """End-to-end sessions on the event loop with a fast tick."""

    def setUp(self):
        logging.disable(logging.CRITICAL)
        self.listener = Mock()
        self.engine = RoundEngine(tick_interval=0.01, on_session_end=self.listener)
        self.answers = {
            q.text: q.correct_answer
            for questions in BUILTIN_QUESTIONS.values()
            for q in questions
        }

    def tearDown(self):
        logging.disable(logging.NOTSET)

    async def test_unanswered_session_times_out_every_round(self):
        config = SessionConfig(difficulty="Easy", round_count=3, seconds_per_round=5)
        snapshots = []

        result = await AsyncTestHelpers.run_with_timeout(
            self.engine.play(config, on_snapshot=snapshots.append)
        )

        self.assertEqual(result, SessionResult(final_score=0, total_rounds=3))
        # three round entries plus five ticks per round
        self.assertEqual(len(snapshots), 3 + 15)
        self.assertEqual([s.seconds_remaining for s in snapshots[:6]], [5, 4, 3, 2, 1, 0])
        self.assertEqual([s.round_number for s in snapshots], [1] * 6 + [2] * 6 + [3] * 6)
        self.listener.assert_called_once_with(result)
        self.assertFalse(self.engine.is_running)
        self.assertEqual(self.engine.phase, EnginePhase.SESSION_ENDED)

    async def test_correct_answer_ends_single_round_session(self):
        engine = RoundEngine(tick_interval=0.05, on_session_end=self.listener)
        config = SessionConfig(difficulty="Normal", round_count=1, seconds_per_round=10)
        snapshots = []

        async def play():
            async for snapshot in engine.start_session(config):
                snapshots.append(snapshot)
                if snapshot.seconds_remaining == 7:
                    engine.submit_answer(self.answers[snapshot.question_text])

        await AsyncTestHelpers.run_with_timeout(play())

        self.assertEqual(engine.result, SessionResult(final_score=1, total_rounds=1))
        self.assertEqual([s.seconds_remaining for s in snapshots], [10, 9, 8, 7])
        self.assertTrue(engine.timer.is_cancelled)
        self.assertEqual(engine.timer.ticks_sent, 3)
        self.listener.assert_called_once_with(engine.result)

    async def test_round_count_clamped_to_bank_size(self):
        engine = RoundEngine(tick_interval=1.0)
        config = SessionConfig(difficulty="Hard", round_count=20, seconds_per_round=5)
        snapshots = []

        async def play():
            async for snapshot in engine.start_session(config):
                snapshots.append(snapshot)
                engine.submit_answer(self.answers[snapshot.question_text])

        await AsyncTestHelpers.run_with_timeout(play())

        self.assertEqual(len(snapshots), 15)
        self.assertTrue(all(s.total_rounds == 15 for s in snapshots))
        self.assertEqual(len({s.question_text for s in snapshots}), 15)
        self.assertEqual(engine.result, SessionResult(final_score=15, total_rounds=15))

    async def test_unrecognized_difficulty_ends_immediately(self):
        config = SessionConfig(difficulty="Impossible", round_count=5, seconds_per_round=5)

        snapshots = await AsyncTestHelpers.run_with_timeout(
            AsyncTestHelpers.collect(self.engine.start_session(config))
        )

        self.assertEqual(snapshots, [])
        self.assertEqual(self.engine.result, SessionResult(final_score=0, total_rounds=0))
        self.assertIsNone(self.engine.timer)
        self.listener.assert_called_once_with(self.engine.result)

    async def test_wrong_answers_do_not_score(self):
        engine = RoundEngine(tick_interval=1.0)
        bank = engine.question_bank
        wrong = {
            q.text: TestFixtures.wrong_option(q) for q in bank.get_questions("Easy")
        }
        config = SessionConfig(difficulty="Easy", round_count=4, seconds_per_round=5)

        async def play():
            async for snapshot in engine.start_session(config):
                engine.submit_answer(wrong[snapshot.question_text])

        await AsyncTestHelpers.run_with_timeout(play())

        self.assertEqual(engine.result, SessionResult(final_score=0, total_rounds=4))

    async def test_duplicate_answers_score_once(self):
        engine = RoundEngine(tick_interval=1.0)
        config = SessionConfig(difficulty="Normal", round_count=2, seconds_per_round=5)
        rounds_seen = []

        async def play():
            async for snapshot in engine.start_session(config):
                rounds_seen.append(snapshot.round_number)
                answer = self.answers[snapshot.question_text]
                engine.submit_answer(answer)
                engine.submit_answer(answer)

        await AsyncTestHelpers.run_with_timeout(play())

        self.assertEqual(rounds_seen, [1, 2])
        self.assertEqual(engine.result.final_score, 2)

    async def test_abandon_mid_round_commits_nothing(self):
        config = SessionConfig(difficulty="Easy", round_count=3, seconds_per_round=5)
        snapshots = []

        async def play():
            async for snapshot in self.engine.start_session(config):
                snapshots.append(snapshot)
                if snapshot.seconds_remaining == 3:
                    self.engine.submit_answer(self.answers[snapshot.question_text])
                    self.engine.abandon()

        await AsyncTestHelpers.run_with_timeout(play())

        self.assertEqual([s.seconds_remaining for s in snapshots], [5, 4, 3])
        self.assertIsNone(self.engine.result)
        self.assertTrue(self.engine.timer.is_cancelled)
        self.assertFalse(self.engine.is_running)
        self.assertEqual(self.engine.phase, EnginePhase.SESSION_ENDED)
        self.listener.assert_not_called()

    async def test_no_ticks_after_abandon(self):
        config = SessionConfig(difficulty="Easy", round_count=1, seconds_per_round=5)
        stream = self.engine.start_session(config)
        first = await stream.__anext__()
        self.assertEqual(first.seconds_remaining, 5)

        self.assertTrue(self.engine.abandon())
        timer = self.engine.timer
        await asyncio.sleep(0.05)

        self.assertEqual(timer.ticks_sent, 0)
        with self.assertRaises(StopAsyncIteration):
            await stream.__anext__()
        self.assertFalse(self.engine.abandon())

    async def test_second_session_while_running_is_rejected(self):
        config = SessionConfig(difficulty="Easy", round_count=1, seconds_per_round=5)
        stream = self.engine.start_session(config)
        await stream.__anext__()

        with self.assertRaises(SessionInProgressError):
            self.engine.start_session(config)

        self.engine.abandon()
        await AsyncTestHelpers.collect(stream)

        # the engine can be reused once the first session is over
        result = await AsyncTestHelpers.run_with_timeout(self.engine.play(config))
        self.assertEqual(result, SessionResult(final_score=0, total_rounds=1))

    async def test_answer_after_session_end_is_ignored(self):
        config = SessionConfig(difficulty="Easy", round_count=1, seconds_per_round=2)
        result = await AsyncTestHelpers.run_with_timeout(self.engine.play(config))

        self.engine.submit_answer("anything")

        self.assertEqual(self.engine.result, result)
        self.listener.assert_called_once()

    async def test_answer_to_timed_out_round_does_not_resolve_next_round(self):
        questions = TestFixtures.create_sample_questions()[:2]
        engine = RoundEngine(question_bank=QuestionBank({"Easy": questions}), tick_interval=0.01)
        config = SessionConfig(difficulty="Easy", round_count=2, seconds_per_round=1)
        answers = {q.text: q.correct_answer for q in questions}
        seen = []

        async def play():
            async for snapshot in engine.start_session(config):
                seen.append((snapshot.round_number, snapshot.seconds_remaining))
                if snapshot.round_number == 1 and snapshot.seconds_remaining == 0:
                    # the player answers the question that just ran out of time
                    engine.submit_answer(answers[snapshot.question_text])

        await AsyncTestHelpers.run_with_timeout(play())

        self.assertEqual(seen, [(1, 1), (1, 0), (2, 1), (2, 0)])
        self.assertEqual(engine.result, SessionResult(final_score=0, total_rounds=2))

    async def test_answer_tagged_with_earlier_round_is_ignored(self):
        engine = RoundEngine(tick_interval=1.0)
        config = SessionConfig(difficulty="Easy", round_count=2, seconds_per_round=5)
        stream = engine.start_session(config)
        first = await stream.__anext__()
        engine.submit_answer(self.answers[first.question_text], round_number=1)
        second = await stream.__anext__()

        engine.submit_answer(self.answers[first.question_text], round_number=1)
        engine.submit_answer(self.answers[second.question_text], round_number=2)
        remaining = await AsyncTestHelpers.run_with_timeout(AsyncTestHelpers.collect(stream))

        self.assertEqual(remaining, [])
        self.assertEqual(engine.result, SessionResult(final_score=2, total_rounds=2))

    async def test_answer_before_first_snapshot_is_ignored(self):
        config = SessionConfig(difficulty="Easy", round_count=1, seconds_per_round=1)
        stream = self.engine.start_session(config)

        self.engine.submit_answer("anything")
        snapshots = await AsyncTestHelpers.run_with_timeout(AsyncTestHelpers.collect(stream))

        self.assertEqual([s.seconds_remaining for s in snapshots], [1, 0])
        self.assertEqual(self.engine.result, SessionResult(final_score=0, total_rounds=1))

    async def test_abandon_before_iterating_frees_engine(self):
        config = SessionConfig(difficulty="Easy", round_count=1, seconds_per_round=2)
        stale = self.engine.start_session(config)

        self.assertTrue(self.engine.abandon())
        self.assertFalse(self.engine.is_running)
        self.assertIsNone(self.engine.timer)

        result = await AsyncTestHelpers.run_with_timeout(self.engine.play(config))
        self.assertEqual(result, SessionResult(final_score=0, total_rounds=1))
        # the abandoned stream yields nothing and leaves the finished session alone
        self.assertEqual(await AsyncTestHelpers.collect(stale), [])
        self.assertEqual(self.engine.result, result)
        self.listener.assert_called_once_with(result)


if __name__ == '__main__':
    unittest.main()
