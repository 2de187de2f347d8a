import envgen
from envgen import core, io, render
from envgen.core import build_attack_decay, build_release, resolve_settings
from envgen.envelope import Envelope
from envgen.cli import main


def test_public_surface():
    assert isinstance(envgen.__version__, str)
    assert envgen.Envelope is Envelope
    assert envgen.resolve_settings is resolve_settings
    assert callable(build_attack_decay)
    assert callable(build_release)
    assert callable(main)
    assert core.CurveKind.LINEAR.value == "linear"
    assert io.read_audio is not None
    assert render.OfflineContext is not None
