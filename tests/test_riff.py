import io
import unittest
import wave

from wav_meta.models import BroadcastMetadata, CorruptChunk
from wav_meta.riff import (
    BEXT_FIXED_SIZE,
    InvalidContainer,
    RiffChunk,
    WavContainer,
    decode_bext,
    encode_bext,
)

from wav_factory import wav_bytes


class TestWavContainer(unittest.TestCase):
    def test_output_is_readable_by_stdlib_wave(self) -> None:
        data = wav_bytes(sample_rate=44100, channels=2, bits=24, frames=441)
        container = WavContainer.from_bytes(data)
        container.set_ixml("<BWFXML><SCENE>1</SCENE></BWFXML>")
        with wave.open(io.BytesIO(container.to_bytes())) as reader:
            self.assertEqual(reader.getframerate(), 44100)
            self.assertEqual(reader.getnchannels(), 2)
            self.assertEqual(reader.getsampwidth(), 3)
            self.assertEqual(reader.getnframes(), 441)

    def test_fmt_and_frame_count(self) -> None:
        container = WavContainer.from_bytes(wav_bytes(sample_rate=48000, channels=2, frames=960))
        self.assertEqual(container.fmt.audio_format, 1)
        self.assertEqual(container.fmt.channels, 2)
        self.assertEqual(container.sample_frames, 960)

    def test_unknown_chunks_survive_round_trip(self) -> None:
        odd = RiffChunk(b"cue ", b"\x01\x02\x03")
        data = wav_bytes(extra_chunks=(odd,))
        container = WavContainer.from_bytes(data)
        self.assertEqual(container.to_bytes(), data)
        self.assertEqual(container.find(b"cue ").data, b"\x01\x02\x03")

    def test_bext_inserted_before_data(self) -> None:
        container = WavContainer.from_bytes(wav_bytes())
        container.set_bext(BroadcastMetadata(description="hello"))
        ids = [chunk.chunk_id for chunk in container.chunks]
        self.assertEqual(ids, [b"fmt ", b"bext", b"data"])

    def test_set_ixml_replaces_existing_chunk(self) -> None:
        container = WavContainer.from_bytes(wav_bytes(ixml="<BWFXML/>"))
        container.set_ixml("<BWFXML><TAKE>2</TAKE></BWFXML>")
        self.assertEqual([c.chunk_id for c in container.chunks].count(b"iXML"), 1)
        self.assertEqual(container.get_ixml(), "<BWFXML><TAKE>2</TAKE></BWFXML>")

    def test_rejects_non_riff_buffer(self) -> None:
        with self.assertRaises(InvalidContainer):
            WavContainer.from_bytes(b"ID3\x03" + bytes(40))

    def test_invalid_utf8_ixml_is_corrupt(self) -> None:
        container = WavContainer.from_bytes(wav_bytes())
        container.chunks.append(RiffChunk(b"iXML", b"\xff\xfe<bad"))
        with self.assertRaises(CorruptChunk):
            container.get_ixml()


class TestBextCodec(unittest.TestCase):
    def test_encode_decode(self) -> None:
        bwf = BroadcastMetadata(
            description="SC07_TK03 voiceover",
            originator="PR2",
            originator_reference="REF123",
            origination_date="2024-03-01",
            origination_time="10:20:30",
            time_reference_low=172800000,
            time_reference_high=1,
            version=1,
            coding_history="A=PCM,F=48000,W=24,M=mono\r\n",
        )
        raw = encode_bext(bwf)
        self.assertEqual(len(raw), BEXT_FIXED_SIZE + len(bwf.coding_history))
        decoded = decode_bext(raw)
        self.assertEqual(decoded.description, "SC07_TK03 voiceover")
        self.assertEqual(decoded.originator, "PR2")
        self.assertEqual(decoded.time_reference, (1 << 32) | 172800000)
        self.assertEqual(decoded.coding_history, "A=PCM,F=48000,W=24,M=mono")

    def test_overlong_fields_are_truncated(self) -> None:
        raw = encode_bext(BroadcastMetadata(originator="é" * 40))
        decoded = decode_bext(raw)
        self.assertEqual(decoded.originator, "é" * 16)

    def test_short_chunk_is_corrupt(self) -> None:
        with self.assertRaises(CorruptChunk):
            decode_bext(b"too short")


if __name__ == "__main__":
    unittest.main()
