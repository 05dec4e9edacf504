"""Tests for the host-side Machine driver."""

import pytest
from octavm import Machine, Fault, RunState, StepOutcome, SoundEvent, RomLoadError
from octavm.logging import EmulatorLogger


class RecordingLogger:
    """Logger stand-in keeping every message."""

    def __init__(self):
        self.messages = []

    def info(self, message):
        self.messages.append(("info", message))

    def warning(self, message):
        self.messages.append(("warning", message))

    def error(self, message):
        self.messages.append(("error", message))

    def at(self, level):
        return [message for lvl, message in self.messages if lvl == level]


def words(*instructions):
    return b"".join(word.to_bytes(2, "big") for word in instructions)


@pytest.fixture
def logger():
    return RecordingLogger()


class TestExecution:
    """Stepping and running."""

    def test_run_counts_instructions(self, logger):
        machine = Machine(logger=logger)
        machine.load_rom_bytes(words(0x7001, 0x1200))

        machine.run(6)

        assert machine.instructions_executed == 6
        assert machine.state.V[0] == 3

    def test_soft_fault_logged_as_warning(self, logger):
        machine = Machine(logger=logger)
        machine.load_rom_bytes(words(0xFFFF, 0x1202))

        machine.step()

        assert machine.last_fault == Fault.UNKNOWN_OPCODE
        assert machine.running
        assert len(logger.at("warning")) == 1
        assert "0xFFFF" in logger.at("warning")[0]
        assert "0x200" in logger.at("warning")[0]

    def test_fatal_fault_logged_as_error(self, logger):
        machine = Machine(logger=logger)
        machine.load_rom_bytes(words(0x2200))

        outcome = machine.run(100)

        assert outcome == StepOutcome.HALTED
        assert machine.instructions_executed == 17
        assert machine.run_state == RunState.STOPPED
        assert machine.last_fault == Fault.STACK_OVERFLOW
        assert len(logger.at("error")) == 1

    def test_idle_steps_keep_last_fault(self, logger):
        machine = Machine(logger=logger)
        machine.load_rom_bytes(words(0x1FFF))
        machine.run(5)

        assert machine.step() == StepOutcome.IDLE
        assert machine.last_fault == Fault.PC_OUT_OF_BOUNDS

    def test_emulator_logger_counts_faults(self):
        logger = EmulatorLogger(log_level="CRITICAL")
        machine = Machine(logger=logger)
        machine.load_rom_bytes(words(0xFFFF, 0xFFFF, 0x1200))

        machine.run(3)

        assert logger.fault_counts == {Fault.UNKNOWN_OPCODE: 2}

    def test_reset_reloads_rom(self, logger):
        machine = Machine(logger=logger)
        machine.load_rom_bytes(words(0x6042))
        machine.step()

        machine.reset()

        assert machine.state.V[0] == 0
        assert machine.state.pc == 0x200
        assert machine.state.memory[0x200] == 0x60

    def test_quirks_passed_to_state(self, logger):
        machine = Machine(logger=logger, jump_quirk=True)
        assert machine.state.jump_quirk
        assert not machine.state.shift_quirk

    def test_load_rom_failure_keeps_state(self, logger, tmp_path):
        machine = Machine(logger=logger)
        machine.load_rom_bytes(words(0x6042))

        with pytest.raises(RomLoadError):
            machine.load_rom(tmp_path / "missing.ch8")

        assert machine.state.memory[0x201] == 0x42


class TestRunStateControl:
    """Pause, resume and stop."""

    def test_toggle_pause(self, logger):
        machine = Machine(logger=logger)
        machine.load_rom_bytes(words(0x7001, 0x1200))

        machine.toggle_pause()
        assert machine.run_state == RunState.PAUSED
        assert machine.run(5) == StepOutcome.IDLE
        assert machine.instructions_executed == 0

        machine.toggle_pause()
        assert machine.running

    def test_stop_is_final(self, logger):
        machine = Machine(logger=logger)
        machine.stop()
        machine.resume()
        assert machine.run_state == RunState.STOPPED

    def test_fail(self, logger):
        machine = Machine(logger=logger)
        machine.fail()
        assert machine.run_state == RunState.ERRORED


class TestInput:
    """Keypad updates."""

    def test_set_key(self, logger):
        machine = Machine(logger=logger)
        machine.set_key(0xA, True)
        assert machine.state.keypad[0xA]
        machine.set_key(0xA, False)
        assert not machine.state.keypad[0xA]

    def test_set_key_out_of_range(self, logger):
        machine = Machine(logger=logger)
        with pytest.raises(ValueError):
            machine.set_key(16, True)

    def test_set_keys(self, logger):
        machine = Machine(logger=logger)
        machine.set_keys([1, 3])
        assert [bool(k) for k in machine.state.keypad[:4]] == [False, True, False, True]

    def test_key_wakes_waiting_program(self, logger):
        machine = Machine(logger=logger)
        machine.load_rom_bytes(words(0xF50A, 0x1202))

        assert machine.step() == StepOutcome.WAITING
        machine.set_key(9, True)
        assert machine.step() == StepOutcome.EXECUTED
        assert machine.state.V[5] == 9


class TestSound:
    """Sound listeners and timers."""

    def test_sound_events(self, logger):
        events = []
        machine = Machine(logger=logger)
        machine.subscribe_sound(events.append)
        machine.load_rom_bytes(words(0x6002, 0xF018, 0x1204))

        machine.run(2)
        assert events == [SoundEvent.START]

        machine.advance_timers(2 / 60)
        assert events == [SoundEvent.START, SoundEvent.STOP]

    def test_timers_frozen_while_paused(self, logger):
        machine = Machine(logger=logger)
        machine.load_rom_bytes(words(0x6010, 0xF015, 0x1204))
        machine.run(2)

        machine.pause()
        machine.advance_timers(1.0)
        assert machine.state.delay_timer == 0x10

        machine.resume()
        machine.advance_timers(1 / 60)
        assert machine.state.delay_timer == 0x0F

    def test_reset_stops_sound(self, logger):
        events = []
        machine = Machine(logger=logger)
        machine.subscribe_sound(events.append)
        machine.load_rom_bytes(words(0x60FF, 0xF018, 0x1204))
        machine.run(2)

        machine.reset()

        assert events == [SoundEvent.START, SoundEvent.STOP]
        assert machine.state.sound_timer == 0

    def test_reset_when_silent_sends_nothing(self, logger):
        events = []
        machine = Machine(logger=logger)
        machine.subscribe_sound(events.append)

        machine.reset()

        assert events == []
