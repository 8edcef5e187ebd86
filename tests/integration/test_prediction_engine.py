"""Integration tests for the prediction cycle and its state machine."""
import threading

import pytest

from sleepio.core.models.data_models import EngineStatus
from sleepio.core.models.sleep_quality import SleepQualityTrainer
from sleepio.core.repositories.record_store import RecordStore
from sleepio.core.services.prediction_engine import PredictionEngine
from sleepio.core.services.sleep_service import SleepService
from sleepio.utils.errors import CycleInProgressError, TrainingFailure


class SpyTrainer(SleepQualityTrainer):
    """Real trainer that remembers every model it hands out."""

    def __init__(self, config):
        super().__init__(config)
        self.models = []

    def train(self, records, progress_callback=None, cancel_event=None, seed=None):
        model = super().train(records, progress_callback, cancel_event, seed)
        self.models.append(model)
        return model


class GatedTrainer(SleepQualityTrainer):
    """Real trainer whose first run waits until released."""

    def __init__(self, config):
        super().__init__(config)
        self.started = threading.Event()
        self.release = threading.Event()
        self.record_counts = []

    def train(self, records, progress_callback=None, cancel_event=None, seed=None):
        self.record_counts.append(len(records))
        self.started.set()
        self.release.wait(timeout=5)
        return super().train(records, progress_callback, cancel_event, seed)


class FailingTrainer:
    min_records = 5

    def __init__(self, error):
        self.error = error
        self.calls = 0

    def train(self, records, progress_callback=None, cancel_event=None, seed=None):
        self.calls += 1
        raise self.error


class BlockingTrainer:
    """Waits until released so a second cycle can be attempted meanwhile."""
    min_records = 5

    def __init__(self):
        self.started = threading.Event()
        self.release = threading.Event()

    def train(self, records, progress_callback=None, cancel_event=None, seed=None):
        self.started.set()
        self.release.wait(timeout=5)
        raise TrainingFailure("released")


@pytest.fixture(name="spy_trainer")
def spy_trainer_fixture(fast_config):
    return SpyTrainer(fast_config)


@pytest.fixture(name="engine")
def engine_fixture(fast_config, spy_trainer):
    return PredictionEngine(fast_config, trainer=spy_trainer)


@pytest.fixture(name="statuses")
def statuses_fixture(engine):
    seen = []
    engine.add_status_listener(seen.append)
    return seen


class TestInsufficientData:
    def test_four_records_do_not_train(self, engine, spy_trainer, statuses, healthy_records):
        state = engine.run_cycle(healthy_records[:4])

        assert spy_trainer.models == []
        assert statuses == []
        assert state.status == EngineStatus.IDLE
        assert state.result is None
        assert state.insufficient_data.record_count == 4
        assert state.insufficient_data.required == 5
        assert state.insights

    def test_empty_history(self, engine):
        state = engine.run_cycle([])
        assert state.insufficient_data.record_count == 0
        assert state.insights == []


class TestPredictionCycle:
    def test_fifth_record_triggers_training(self, engine, spy_trainer, statuses, healthy_records):
        store = RecordStore()
        store.subscribe(engine.on_records_changed)
        progress = []
        engine.add_progress_listener(progress.append)

        for record in healthy_records[:4]:
            store.append(record)
        assert engine.state().insufficient_data is not None
        assert spy_trainer.models == []

        store.append(healthy_records[4])
        state = engine.state()

        assert statuses == [EngineStatus.LOADING, EngineStatus.TRAINING, EngineStatus.READY]
        assert progress[-1] == 100
        assert state.progress == 100
        assert state.insufficient_data is None
        assert 0 <= state.result.score <= 100
        assert 40 <= state.result.confidence_score <= 95
        assert 0 < len(state.result.factors) <= 4
        assert state.result.record_count == 5
        assert len(spy_trainer.models) == 1

    def test_model_released_after_cycle(self, engine, spy_trainer, healthy_records):
        engine.run_cycle(healthy_records)
        assert spy_trainer.models[0].closed

    def test_every_change_retrains_a_new_model(self, engine, spy_trainer, healthy_records):
        engine.run_cycle(healthy_records[:5])
        engine.run_cycle(healthy_records[:6])
        assert len(spy_trainer.models) == 2
        assert spy_trainer.models[0] is not spy_trainer.models[1]

    def test_ready_goes_back_through_loading(self, engine, statuses, healthy_records):
        engine.run_cycle(healthy_records)
        engine.run_cycle(healthy_records[:-1])
        assert statuses == [EngineStatus.LOADING, EngineStatus.TRAINING, EngineStatus.READY] * 2

    def test_dropping_below_minimum_clears_result(self, engine, healthy_records):
        engine.run_cycle(healthy_records[:5])
        seen = []
        engine.add_status_listener(seen.append)

        state = engine.run_cycle(healthy_records[:4])
        assert state.status == EngineStatus.IDLE
        assert state.result is None
        assert state.insufficient_data.record_count == 4
        assert seen == [EngineStatus.LOADING, EngineStatus.IDLE]

    def test_accepts_record_mappings(self, engine, healthy_records):
        rows = [record.model_dump() for record in healthy_records]
        assert engine.run_cycle(rows).status == EngineStatus.READY


class TestFailures:
    def test_malformed_record_ends_in_error(self, engine, spy_trainer, statuses, healthy_records):
        bad = healthy_records[0].model_dump()
        del bad["quality"]

        state = engine.run_cycle([bad] + healthy_records[1:5])

        assert statuses == [EngineStatus.LOADING, EngineStatus.ERROR]
        assert state.result is None
        assert "Invalid sleep record" in state.error
        assert spy_trainer.models == []

    def test_malformed_short_history_goes_through_loading(self, engine, statuses, healthy_records):
        bad = healthy_records[0].model_dump()
        bad["quality"] = "great"

        state = engine.run_cycle([bad] + healthy_records[1:3])

        assert statuses == [EngineStatus.LOADING, EngineStatus.ERROR]
        assert state.insufficient_data is None

    def test_recovers_on_next_trigger(self, engine, statuses, healthy_records):
        bad = healthy_records[0].model_dump()
        bad["duration_hours"] = None
        engine.run_cycle([bad] + healthy_records[1:5])

        state = engine.run_cycle(healthy_records)

        assert state.status == EngineStatus.READY
        assert state.error is None
        assert statuses[-3:] == [EngineStatus.LOADING, EngineStatus.TRAINING, EngineStatus.READY]

    def test_training_failure(self, fast_config, healthy_records):
        engine = PredictionEngine(fast_config, trainer=FailingTrainer(TrainingFailure("diverged")))
        state = engine.run_cycle(healthy_records)
        assert state.status == EngineStatus.ERROR
        assert state.error == "diverged"
        assert state.result is None

    def test_unexpected_error_does_not_escape(self, fast_config, healthy_records):
        trainer = FailingTrainer(ZeroDivisionError("boom"))
        engine = PredictionEngine(fast_config, trainer=trainer)

        state = engine.run_cycle(healthy_records)

        assert state.status == EngineStatus.ERROR
        assert "boom" in state.error
        engine.run_cycle(healthy_records)
        assert trainer.calls == 2

    def test_previous_result_not_kept_after_failure(self, fast_config, healthy_records):
        engine = PredictionEngine(fast_config)
        assert engine.run_cycle(healthy_records).result is not None

        engine.trainer = FailingTrainer(TrainingFailure("diverged"))
        assert engine.run_cycle(healthy_records).result is None


class TestCancellationAndConcurrency:
    def test_cancel_returns_to_idle(self, engine, healthy_records):
        engine.add_progress_listener(lambda progress: engine.cancel())
        state = engine.run_cycle(healthy_records)

        assert state.status == EngineStatus.IDLE
        assert state.result is None
        assert state.progress == 0

    def test_cancel_without_cycle(self, engine):
        assert engine.cancel() is False

    def test_overlapping_cycle_rejected(self, fast_config, healthy_records):
        trainer = BlockingTrainer()
        engine = PredictionEngine(fast_config, trainer=trainer)
        worker = threading.Thread(target=engine.run_cycle, args=(healthy_records,))
        worker.start()
        try:
            assert trainer.started.wait(timeout=5)
            with pytest.raises(CycleInProgressError):
                engine.run_cycle(healthy_records)
        finally:
            trainer.release.set()
            worker.join(timeout=5)

        assert engine.status == EngineStatus.ERROR
        assert engine.run_cycle(healthy_records[:4]).status == EngineStatus.IDLE

    def test_change_during_cycle_is_trained_afterwards(self, fast_config, healthy_records):
        trainer = GatedTrainer(fast_config)
        service = SleepService(RecordStore(healthy_records[:4]), PredictionEngine(fast_config, trainer=trainer))
        worker = threading.Thread(target=service.log_sleep_entry, args=(healthy_records[4],))
        worker.start()
        try:
            assert trainer.started.wait(timeout=5)
            response = service.log_sleep_entry(healthy_records[5])
        finally:
            trainer.release.set()
            worker.join(timeout=5)

        assert response["status"] == "success"
        assert len(service.store) == 6
        assert trainer.record_counts == [5, 6]
        state = service.engine.state()
        assert state.status == EngineStatus.READY
        assert state.result.record_count == 6

    def test_only_newest_pending_change_is_trained(self, fast_config, healthy_records):
        trainer = GatedTrainer(fast_config)
        store = RecordStore(healthy_records[:4])
        service = SleepService(store, PredictionEngine(fast_config, trainer=trainer))
        worker = threading.Thread(target=service.log_sleep_entry, args=(healthy_records[4],))
        worker.start()
        try:
            assert trainer.started.wait(timeout=5)
            service.log_sleep_entry(healthy_records[5])
            service.log_sleep_entry(healthy_records[6])
            service.delete_sleep_entry(healthy_records[0].record_id)
        finally:
            trainer.release.set()
            worker.join(timeout=5)

        assert trainer.record_counts == [5, 6]
        assert service.engine.state().result.record_count == 6
