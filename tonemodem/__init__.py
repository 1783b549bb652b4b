"""
tonemodem: text over audio with two-tone FSK.

Modules:
- config: ModemConfig, defaults, validation to warnings, JSON loading
- tones: sine synthesis with AM, Hann envelope
- goertzel: single-bin energy detector
- codec.wav: mono 16-bit PCM WAV encode/parse
- protocol.bits / protocol.framing: bitstream helpers, frame encoder and decoder
- core.modem: ToneModem facade (encode text -> WAV bytes, decode samples -> text)
- service: tagged Success/Failure results for a request/response layer
- channel.simulator: noise / gain / band-limit channel for robustness tests
"""
