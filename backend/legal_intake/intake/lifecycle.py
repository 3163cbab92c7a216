"""
Intake Session State Machine

7 狀態 / 7 轉換，使用 transitions library。
純狀態轉換驗證，不含 IO。
"""

from transitions import Machine

STATES = [
    "pending",
    "classified",
    "matter_done",
    "contact_done",
    "scored",
    "decided",
    "failed",
]

TRANSITIONS = [
    {"trigger": "classify",        "source": "pending",      "dest": "classified"},
    {"trigger": "extract_matter",  "source": "classified",   "dest": "matter_done"},
    {"trigger": "skip_matter",     "source": "classified",   "dest": "matter_done"},
    {"trigger": "extract_contact", "source": "matter_done",  "dest": "contact_done"},
    {"trigger": "reject_contact",  "source": "contact_done", "dest": "failed"},
    {"trigger": "score",           "source": "contact_done", "dest": "scored"},
    {"trigger": "decide",          "source": "scored",       "dest": "decided"},
]

TERMINAL_STATES = {"decided", "failed"}

FAIL_TRIGGER = "reject_contact"


class IntakeLifecycle:
    """Intake session 生命週期狀態機（純驗證，不含 IO）"""

    def __init__(self, initial_state: str = "pending"):
        self.machine = Machine(
            model=self,
            states=STATES,
            transitions=TRANSITIONS,
            initial=initial_state,
            auto_transitions=False,
            send_event=False,
        )

    def try_trigger(self, trigger_name: str) -> tuple:
        """
        嘗試觸發轉換。

        Returns:
            (True, new_state) on success
            (False, error_message) on failure
        """
        trigger_fn = getattr(self, trigger_name, None)
        if trigger_fn is None or trigger_name not in self.machine.get_triggers(self.state):
            return False, f"Cannot '{trigger_name}' from state '{self.state}'"

        trigger_fn()
        return True, self.state

    def fire(self, trigger_name: str) -> str:
        """觸發轉換；順序錯誤時拋出 RuntimeError"""
        ok, result = self.try_trigger(trigger_name)
        if not ok:
            raise RuntimeError(result)
        return result

    def get_available_triggers(self) -> list:
        """取得目前狀態可用的 trigger 列表"""
        return self.machine.get_triggers(self.state)

    @property
    def is_terminal(self) -> bool:
        return self.state in TERMINAL_STATES
