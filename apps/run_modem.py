#!/usr/bin/env python3
"""
TONE MODEM - command line runner
================================
Encode text into an FSK WAV file, or decode a recorded WAV back to text.

Usage:
    python3 apps/run_modem.py encode "Hello" -o hello.wav [--play]
    python3 apps/run_modem.py decode hello.wav [--plot hello.png]
"""
import argparse
import logging
import os
import sys

import numpy as np
import matplotlib.pyplot as plt
from scipy import signal

# Add project root to path
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '../')))

from tonemodem.config import load_config
from tonemodem.core.modem import ToneModem
from tonemodem.codec.wav import write_wav, read_wav
from tonemodem.errors import ModemError

logger = logging.getLogger("TONEMODEM")


def play(samples, sample_rate):
    """Blocking playback on the default output device."""
    import sounddevice as sd
    sd.play(samples.astype(np.float32), sample_rate)
    sd.wait()


def plot_reception(samples, sample_rate, report, path):
    """Waveform with the sync point marked, plus spectrogram."""
    t = np.arange(len(samples)) / sample_rate
    fig, (ax1, ax2) = plt.subplots(2, 1, figsize=(12, 7), sharex=True)

    ax1.plot(t, samples, 'k', alpha=0.7, linewidth=0.5)
    if report is not None and report.sync_index >= 0:
        ax1.axvline(report.sync_index / sample_rate, color='g', linestyle='--', label='Sync')
        ax1.legend(loc='upper right')
    ax1.set_title("Received Signal (Time Domain)")
    ax1.set_ylabel("Amplitude")
    ax1.grid(True, alpha=0.3)

    f, t_spec, Sxx = signal.spectrogram(samples, sample_rate, nperseg=1024, noverlap=768)
    ax2.pcolormesh(t_spec, f, 10 * np.log10(Sxx + 1e-10), shading='gouraud', cmap='inferno')
    ax2.set_ylim(0, 3000)
    ax2.set_ylabel('Frequency [Hz]')
    ax2.set_xlabel('Time (s)')
    ax2.set_title("Spectrogram")

    plt.tight_layout()
    plt.savefig(path)
    plt.close(fig)
    logger.info(f"Saved plot to {path}")


def cmd_encode(modem, args):
    samples = modem.encode_samples(args.text)
    write_wav(args.output, samples, modem.sample_rate)
    print(f"Encoded {len(args.text)} chars -> {args.output} "
          f"({len(samples)} samples, {len(samples) / modem.sample_rate:.2f}s)")
    if args.play:
        play(samples, modem.sample_rate)
    return 0


def cmd_decode(modem, args):
    samples, sample_rate = read_wav(args.input)
    report = None
    try:
        report = modem.analyze(samples, sample_rate)
    finally:
        if args.plot:
            plot_reception(samples, sample_rate, report, args.plot)
    print(report.text)
    logger.info(f"Sync @ {report.sync_index}, {report.bits_decoded} bits, stop: {report.stop_reason.value}")
    return 0


def build_parser():
    parser = argparse.ArgumentParser(description="Text <-> FSK audio modem")
    parser.add_argument('--config', help='JSON settings file')
    parser.add_argument('-v', '--verbose', action='store_true', help='Debug logging')
    sub = parser.add_subparsers(dest='command', required=True)

    enc = sub.add_parser('encode', help='Encode text to a WAV file')
    enc.add_argument('text')
    enc.add_argument('-o', '--output', default='encoded_melodic.wav')
    enc.add_argument('--play', action='store_true', help='Play through the sound card')
    enc.set_defaults(func=cmd_encode)

    dec = sub.add_parser('decode', help='Decode a WAV file to text')
    dec.add_argument('input')
    dec.add_argument('--plot', help='Save waveform/spectrogram PNG here')
    dec.set_defaults(func=cmd_decode)
    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO,
                        format='%(asctime)s [%(levelname)s] %(message)s')

    try:
        config, warnings = load_config(args.config)
    except (OSError, ValueError) as e:
        logger.error(f"Cannot load config {args.config}: {e}")
        return 1
    for w in warnings:
        logger.warning(str(w))
    modem = ToneModem(config)

    try:
        return args.func(modem, args)
    except ModemError as e:
        logger.error(f"{e.kind.value}: {e.message}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
