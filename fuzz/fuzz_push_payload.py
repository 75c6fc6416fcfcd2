# Copyright (c) 2025, Renaud Allard <renaud@allard.it>, Kris Van Biesen <kvanbiesen@gmail.com>, Jyri Saukkonen <jyri.saukkonen+jjyksi@gmail.com>
# All rights reserved.
#
# Redistribution and use in source and binary forms, with or without
# modification, are permitted provided that the following conditions are met:
#
# 1. Redistributions of source code must retain the above copyright notice,
#    this list of conditions and the following disclaimer.
#
# 2. Redistributions in binary form must reproduce the above copyright notice,
#    this list of conditions and the following disclaimer in the documentation
#    and/or other materials provided with the distribution.
#
# THIS SOFTWARE IS PROVIDED BY THE COPYRIGHT HOLDERS AND CONTRIBUTORS "AS IS"
# AND ANY EXPRESS OR IMPLIED WARRANTIES, INCLUDING, BUT NOT LIMITED TO, THE
# IMPLIED WARRANTIES OF MERCHANTABILITY AND FITNESS FOR A PARTICULAR PURPOSE
# ARE DISCLAIMED. IN NO EVENT SHALL THE COPYRIGHT HOLDER OR CONTRIBUTORS BE
# LIABLE FOR ANY DIRECT, INDIRECT, INCIDENTAL, SPECIAL, EXEMPLARY, OR
# CONSEQUENTIAL DAMAGES (INCLUDING, BUT NOT LIMITED TO, PROCUREMENT OF
# SUBSTITUTE GOODS OR SERVICES; LOSS OF USE, DATA, OR PROFITS; OR BUSINESS
# INTERRUPTION) HOWEVER CAUSED AND ON ANY THEORY OF LIABILITY, WHETHER IN
# CONTRACT, STRICT LIABILITY, OR TORT (INCLUDING NEGLIGENCE OR OTHERWISE)
# ARISING IN ANY WAY OUT OF THE USE OF THIS SOFTWARE, EVEN IF ADVISED OF THE
# POSSIBILITY OF SUCH DAMAGE.

import os
import sys

import atheris

# Default fuzz duration in seconds (4 hours) - exits cleanly when reached
DEFAULT_MAX_TIME = 4 * 60 * 60

PRODUCTION_VALUES_PATH = os.path.abspath(
    os.path.join(os.path.dirname(__file__), "..", "custom_components", "production_values")
)
sys.path.insert(0, PRODUCTION_VALUES_PATH)

with atheris.instrument_imports():
    import payload


NAME_SAMPLES = [
    "TankLevel",
    "Line1/Filler.Speed",
    "Tank 2 Level",
    "",
    "   ",
    "Tank\nLevel",
    "x" * 200,
]

UNIT_SAMPLES = ["L", "bar", "°C", "%", "", "  ", "x" * 64]


def _consume_text(fdp: atheris.FuzzedDataProvider, max_len: int) -> str:
    return fdp.ConsumeUnicodeNoSurrogates(max_len)


def _consume_value(fdp: atheris.FuzzedDataProvider):
    choice = fdp.ConsumeIntInRange(0, 7)
    if choice == 0:
        return None
    if choice == 1:
        return fdp.ConsumeIntInRange(-1_000_000, 1_000_000)
    if choice == 2:
        return fdp.ConsumeBool()
    if choice == 3:
        return fdp.ConsumeFloat()
    if choice == 4:
        return _consume_text(fdp, 64)
    if choice == 5:
        return fdp.ConsumeBytes(fdp.ConsumeIntInRange(0, 40))
    if choice == 6:
        return [fdp.ConsumeIntInRange(0, 255) for _ in range(fdp.ConsumeIntInRange(0, 10))]
    return {_consume_text(fdp, 8): _consume_text(fdp, 12)}


def _consume_name(fdp: atheris.FuzzedDataProvider):
    if fdp.ConsumeBool():
        return NAME_SAMPLES[fdp.ConsumeIntInRange(0, len(NAME_SAMPLES) - 1)]
    return _consume_text(fdp, 40)


def _consume_entry(fdp: atheris.FuzzedDataProvider):
    if fdp.ConsumeBool():
        return _consume_value(fdp)
    entry = {}
    if fdp.ConsumeBool():
        entry["value"] = _consume_value(fdp)
    if fdp.ConsumeBool():
        if fdp.ConsumeBool():
            entry["unit"] = UNIT_SAMPLES[fdp.ConsumeIntInRange(0, len(UNIT_SAMPLES) - 1)]
        else:
            entry["unit"] = _consume_value(fdp)
    if fdp.ConsumeBool():
        entry["timestamp"] = _consume_text(fdp, 80)
    return entry


def _consume_payload(fdp: atheris.FuzzedDataProvider):
    choice = fdp.ConsumeIntInRange(0, 9)
    if choice == 0:
        return _consume_value(fdp)
    if choice == 1:
        return {"variables": _consume_value(fdp)}
    variables = {}
    for _ in range(fdp.ConsumeIntInRange(0, 12)):
        variables[_consume_name(fdp)] = _consume_entry(fdp)
    return {"variables": variables}


def _safe_parse_int(value):
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _existing_max_total_time(args):
    existing = None
    for idx, arg in enumerate(args):
        if arg.startswith("-max_total_time="):
            parsed = _safe_parse_int(arg.split("=", 1)[1])
            if parsed is not None:
                existing = parsed
        elif arg == "-max_total_time" and idx + 1 < len(args):
            parsed = _safe_parse_int(args[idx + 1])
            if parsed is not None:
                existing = parsed
    if existing is not None and existing <= 0:
        return None
    return existing


def TestOneInput(data: bytes) -> None:
    fdp = atheris.FuzzedDataProvider(data)
    message = _consume_payload(fdp)
    try:
        updates = payload.parse_push_payload(message)
    except payload.PayloadError:
        return

    for update in updates:
        assert payload.is_valid_variable_name(update.name)
        assert isinstance(update.value, (bool, int, float, str))
        assert update.unit is None or (
            isinstance(update.unit, str) and 0 < len(update.unit) <= payload.MAX_UNIT_LENGTH
        )
        assert update.timestamp == payload.sanitize_timestamp_string(update.timestamp)


def main() -> None:
    # Ensure max time is capped so fuzzers exit before CI timeout.
    args = sys.argv[:]
    max_time_env = os.environ.get("FUZZ_MAX_TIME", DEFAULT_MAX_TIME)
    max_time = _safe_parse_int(max_time_env) or DEFAULT_MAX_TIME
    if max_time <= 0:
        max_time = DEFAULT_MAX_TIME
    existing_max = _existing_max_total_time(args)
    effective_max = min(existing_max, max_time) if existing_max else max_time
    args.append(f"-max_total_time={effective_max}")
    print(f"Fuzzing for {effective_max} seconds ({effective_max / 3600:.1f} hours)")

    atheris.Setup(args, TestOneInput)
    atheris.Fuzz()
    print("Fuzzing completed successfully - no issues found!")


if __name__ == "__main__":
    main()
