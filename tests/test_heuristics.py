import unittest

from wav_meta.heuristics import FilenameGuess, guess_metadata_from_filename


class TestStrictFilenamePattern(unittest.TestCase):
    def test_scene_slate_take(self) -> None:
        guess = guess_metadata_from_filename("PR2_Allen_Sc5.14D_01.wav")
        self.assertEqual(
            guess,
            FilenameGuess(
                show="PR2",
                category="Allen",
                scene="5.14",
                slate="D",
                take="01",
                subcategory="5",
            ),
        )

    def test_case_insensitive_marker_and_extension(self) -> None:
        guess = guess_metadata_from_filename("ep1_fx_sc12_003.WAV")
        self.assertIsNotNone(guess)
        self.assertEqual(guess.scene, "12")
        self.assertEqual(guess.slate, "")
        self.assertEqual(guess.take, "003")
        self.assertEqual(guess.subcategory, "12")

    def test_leading_zeros_are_kept(self) -> None:
        guess = guess_metadata_from_filename("SHOW_Cat_Sc007_0004.wav")
        self.assertEqual((guess.scene, guess.take), ("007", "0004"))


class TestGenericFilenameFallback(unittest.TestCase):
    def test_numeric_tail_becomes_take(self) -> None:
        guess = guess_metadata_from_filename("Doc_Interview_Kitchen_Wide_12.wav")
        self.assertEqual(guess.show, "Doc")
        self.assertEqual(guess.category, "Interview")
        self.assertEqual(guess.scene, "Kitchen_Wide")
        self.assertEqual(guess.take, "12")
        self.assertEqual(guess.slate, "")

    def test_non_numeric_tail_stays_in_scene(self) -> None:
        guess = guess_metadata_from_filename("Doc_Interview_Kitchen_Wide.wav")
        self.assertEqual(guess.scene, "Kitchen_Wide")
        self.assertEqual(guess.take, "")

    def test_two_tokens(self) -> None:
        guess = guess_metadata_from_filename("Doc_Interview.wav")
        self.assertEqual((guess.show, guess.category, guess.scene, guess.take), ("Doc", "Interview", "", ""))

    def test_three_tokens_numeric_tail(self) -> None:
        guess = guess_metadata_from_filename("Doc_Room_3.wav")
        self.assertEqual(guess.scene, "")
        self.assertEqual(guess.take, "3")

    def test_single_token_does_not_match(self) -> None:
        self.assertIsNone(guess_metadata_from_filename("ambience.wav"))

    def test_malformed_input_never_raises(self) -> None:
        for value in ("", "_", "__", ".wav", None, 42):
            guess_metadata_from_filename(value)  # type: ignore[arg-type]
        self.assertIsNone(guess_metadata_from_filename(""))
        self.assertIsNone(guess_metadata_from_filename(None))  # type: ignore[arg-type]


if __name__ == "__main__":
    unittest.main()
