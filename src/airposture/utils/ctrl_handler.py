import signal
import threading


class CtrlCHandler:
    """
    Handle Ctrl+C for clean shutdown so the final posture upload
    and session summary still happen.
    """
    def __init__(self, install: bool = True):
        self.should_stop = False
        self.stop_event = threading.Event()
        if install:
            signal.signal(signal.SIGINT, self._signal_handler)

    def _signal_handler(self, sig, frame):
        """Callback executed when Ctrl+C is detected"""
        print("\n[INFO] Interrupt signal detected, closing cleanly...")
        self.request_stop()

    def request_stop(self):
        self.should_stop = True
        self.stop_event.set()
