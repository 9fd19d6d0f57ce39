"""Integration tests: enabled/disabled/intermediate machine end to end."""
from __future__ import annotations

from host_fsm import State, StatefulMixin, StateMachine, Transition


class EnabledState(State):
    is_enabled = True
    test_property = True

    def disable(self) -> bool:
        return self.machine.transition("disabled")

    def demo_method(self) -> bool:
        return True


class DisabledState(State):
    is_enabled = False

    def enable(self) -> bool:
        return self.machine.transition("enabled")


class IntermediateState(State):
    is_enabled = None

    def before_enter(self, transition: Transition) -> bool:
        """Blocks entry straight from the enabled state."""
        from_state = self.machine.get_state()
        if from_state is not None and from_state.name == "enabled":
            return False
        return super().before_enter(transition)


class Component(StatefulMixin):
    pass


class TestEnabledDisabledMachine:
    """Scenarios over a machine with enabled (default), disabled and intermediate states."""

    def test_delegated_members(self) -> None:
        """State members follow the current state through the machine."""
        # Arrange
        machine = StateMachine()
        machine.set_states([
            EnabledState("enabled", machine),
            DisabledState("disabled", machine),
        ])
        machine.default_state_name = "enabled"

        # Assert - default state active
        assert machine.is_in("enabled")
        assert not machine.is_in("disabled")
        assert machine.get("is_enabled") is True
        assert machine.has("test_property")

        # Act
        machine.invoke("disable")

        # Assert
        assert machine.is_in("disabled")
        assert not machine.is_in("enabled")
        assert machine.get("is_enabled") is False
        assert not machine.has("test_property")

    def test_add_remove_states(self) -> None:
        """Members appear once a default is set and vanish with the state."""
        machine = StateMachine()

        machine.add_state(EnabledState("enabled", machine))
        assert not machine.has("test_property")

        machine.default_state_name = "enabled"
        assert machine.has("test_property")

        machine.remove_state("enabled")
        assert not machine.has("test_property")
        assert machine.get_state() is None

    def test_guarded_transitions_and_history(self) -> None:
        """Intermediate blocks entry from enabled only; history is capped."""
        # Arrange
        machine = StateMachine()
        machine.set_states([
            EnabledState("enabled", machine),
            DisabledState("disabled", machine),
            IntermediateState("intermediate", machine),
        ])
        machine.default_state_name = "enabled"
        machine.enable_transition_history = True
        machine.maximum_transition_history_size = 2
        history = machine.get_transition_history()

        # Act & Assert
        assert machine.transition("intermediate") is False
        assert machine.is_in("enabled")
        assert history.count() == 0

        assert machine.transition("disabled") is True
        assert machine.is_in("disabled")
        assert history.count() == 1

        assert machine.transition("intermediate") is True
        assert history.count() == 2

        assert machine.transition("enabled") is True
        assert history.count() == 2
        assert [(t.from_name, t.to_name) for t in history] == [
            ("intermediate", "enabled"),
            ("disabled", "intermediate"),
        ]

    def test_host_component(self) -> None:
        """A host forwards to the machine attached to it."""
        machine = StateMachine()
        machine.set_states([
            EnabledState("enabled", machine),
            DisabledState("disabled", machine),
        ])
        machine.default_state_name = "enabled"

        component = Component()
        component.attach_state_machine("status", machine)

        assert component.is_in("enabled")
        assert component.invoke("demo_method") is True
        assert component.transition("disabled") is True
        assert component.state_machine("status").is_in("disabled")

    def test_hook_events(self) -> None:
        """Each hook fires exactly once with the same transition value."""
        calls: list[tuple[str, str, Transition]] = []

        class Spy(State):
            def before_enter(self, transition: Transition) -> bool:
                calls.append((self.name, "before_enter", transition))
                return True

            def after_enter(self, transition: Transition) -> None:
                calls.append((self.name, "after_enter", transition))

            def before_exit(self, transition: Transition) -> bool:
                calls.append((self.name, "before_exit", transition))
                return True

            def after_exit(self, transition: Transition) -> None:
                calls.append((self.name, "after_exit", transition))

        machine = StateMachine()
        enabled, disabled = Spy("enabled", machine), Spy("disabled", machine)
        machine.set_states([enabled, disabled])
        machine.default_state_name = "enabled"
        machine.on_before_transition(lambda t: calls.append(("machine", "before_transition", t)))
        machine.on_after_transition(lambda t: calls.append(("machine", "after_transition", t)))

        params = {"param": 2}
        assert machine.transition("disabled", params) is True

        expected = Transition(machine=machine, to_state=disabled, from_state=enabled, params=params)
        assert [(who, hook) for who, hook, _ in calls] == [
            ("machine", "before_transition"),
            ("enabled", "before_exit"),
            ("disabled", "before_enter"),
            ("enabled", "after_exit"),
            ("disabled", "after_enter"),
            ("machine", "after_transition"),
        ]
        assert all(t == expected for _, _, t in calls)
        assert calls[0][2].from_state.name == "enabled"
        assert calls[0][2].to_state.name == "disabled"
        assert calls[0][2].params == {"param": 2}
