import importlib.util
import logging
import subprocess
import sys

import numpy as np
import pygame

logger = logging.getLogger(__name__)

SAMPLE_RATE = 22050
MASTER_VOLUME = 0.4
CANCEL_TIMEOUT = 1.0

# Ereignis -> Töne (Frequenz, Dauer, Wellenform, Lautstärke)
CUES = {
    "jump": [(520, 0.12, "triangle", 0.12)],
    "success": [(740, 0.2, "sine", 0.18), (980, 0.3, "sine", 0.12)],
    "soft_reject": [(360, 0.15, "triangle", 0.1)],
    "shutter": [(420, 0.2, "sawtooth", 0.08)],
}
AMBIENT_TONE = (96, 2.0, "sine", 0.02)

LUMI_LINES = [
    "Hilfst du mir?",
    "Fast! Lass uns nochmal schauen.",
    "Wow! Jetzt leuchtet der Wald ✨",
]
TTS_MISSING = "TTS ist hier leider nicht verfügbar."
TTS_MUTED = "Der Ton ist aus. Mit M wieder einschalten."


def tone_samples(frequency, duration, waveform="sine", volume=0.2, sample_rate=SAMPLE_RATE, channels=1,
                 fade=True):
    """PCM-Samples (int16) für einen einfachen Ton."""

    frames = int(duration * sample_rate)
    t = np.linspace(0, duration, frames, endpoint=False)
    phase = frequency * t
    if waveform == "triangle":
        wave = 2 * np.abs(2 * (phase - np.floor(phase + 0.5))) - 1
    elif waveform == "sawtooth":
        wave = 2 * (phase - np.floor(phase + 0.5))
    else:
        wave = np.sin(2 * np.pi * phase)
    # kurzes Ausblenden gegen Knacken
    release = min(frames, int(0.02 * sample_rate)) if fade else 0
    if release:
        wave[-release:] *= np.linspace(1.0, 0.0, release)
    arr = (wave * volume * 32767).astype(np.int16)
    if channels == 2:
        arr = np.repeat(arr[:, None], 2, axis=1)
    return np.ascontiguousarray(arr)


class AudioBus:
    """Kurze synthetische Soundeffekte über pygame.mixer."""

    def __init__(self, settings):
        self.settings = settings
        self.available = False
        self.sounds = {}
        self.ambient = None

    def init(self):
        if self.available:
            return
        try:
            if not pygame.mixer.get_init():
                pygame.mixer.init(frequency=SAMPLE_RATE, size=-16)
            channels = pygame.mixer.get_init()[2]
            for name, tones in CUES.items():
                self.sounds[name] = [
                    pygame.sndarray.make_sound(tone_samples(f, d, w, v, SAMPLE_RATE, channels))
                    for f, d, w, v in tones
                ]
            # Endlosschleife: ganze Perioden, kein Ausblenden
            self.ambient = pygame.sndarray.make_sound(
                tone_samples(*AMBIENT_TONE, SAMPLE_RATE, channels, fade=False))
        except pygame.error as exc:
            logger.info("Audio nicht verfügbar: %s", exc)
            self.sounds = {}
            self.ambient = None
            return
        self.available = True
        self.ambient.play(loops=-1)
        self.set_mute(self.settings.get("mute"))

    def set_mute(self, muted):
        if not self.available:
            return
        volume = 0.0 if muted else MASTER_VOLUME
        for sounds in self.sounds.values():
            for snd in sounds:
                snd.set_volume(volume)
        self.ambient.set_volume(volume)

    def play(self, event):
        if not self.available or self.settings.get("mute"):
            return
        for snd in self.sounds.get(event, ()):
            snd.play()


class Speech:
    """Vorlesen über pyttsx3 in einem eigenen Prozess, damit die Schleife nie wartet."""

    SCRIPT = (
        "import sys\n"
        "import pyttsx3\n"
        "e = pyttsx3.init()\n"
        "e.setProperty('rate', 150)\n"
        "e.say(' '.join(sys.argv[1:]))\n"
        "e.runAndWait()\n"
    )

    def __init__(self, settings, available=None):
        self.settings = settings
        if available is None:
            available = importlib.util.find_spec("pyttsx3") is not None
        self.available = available
        self._proc = None
        if not self.available:
            logger.info("Sprachausgabe nicht verfügbar")

    def speak(self, text):
        if not self.available or self.settings.get("mute") or not text:
            return False
        self.cancel()
        try:
            self._proc = subprocess.Popen(
                [sys.executable, "-c", self.SCRIPT, text],
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
            )
        except OSError as exc:
            logger.warning("Sprachausgabe fehlgeschlagen: %s", exc)
            self.available = False
            return False
        return True

    def cancel(self):
        proc, self._proc = self._proc, None
        if proc is None:
            return
        if proc.poll() is None:
            proc.terminate()
        try:
            proc.wait(timeout=CANCEL_TIMEOUT)
        except subprocess.TimeoutExpired:
            logger.warning("Sprachprozess reagiert nicht, wird beendet")
            proc.kill()
            proc.wait()
