class MockSpeech:
    name = "mock_tts"

    def __init__(self, status_store):
        self.status = status_store
        self.spoken: list[str] = []
        self.stops = 0
        self.speaking = False

    def speak(self, text: str):
        self.spoken.append(text)
        self.speaking = True
        self.status.log(f"mock_tts: say {text!r}")

    def stop_speaking(self):
        self.stops += 1
        self.speaking = False
        self.status.log("mock_tts: stop")
