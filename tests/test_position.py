"""Tests for the pure position functions.

WHY: The scheduler trusts these functions completely: a wrong rollover
skips words, a wrong break flag drops a pause, a wrong borrow makes
"back one sentence" land somewhere surprising.

HOW: Uses the two-chapter sample book from conftest (17 words). See the
conftest docstring for its exact layout.
"""

from __future__ import annotations

from rsvp_reader.core.ir import Chapter, Document, Paragraph, Sentence
from rsvp_reader.core.position import (
    START,
    Position,
    advance_one,
    chapter_start,
    first_position,
    is_at_end,
    last_position,
    linear_index_of,
    resolve_chapter,
    resolve_word,
    retreat_one,
    step_paragraph,
    step_sentence,
    total_words,
    word_at_linear_index,
)
from rsvp_reader.core.tokenizer import tokenize

LAST = Position(1, 1, 0, 1)


class TestResolve:

    def test_resolve_first_word(self, sample_document):
        assert resolve_word(sample_document, START).text == "Hello"

    def test_resolve_last_word(self, sample_document):
        assert resolve_word(sample_document, LAST).text == "words."

    def test_out_of_range_is_none(self, sample_document):
        assert resolve_word(sample_document, Position(5, 0, 0, 0)) is None
        assert resolve_word(sample_document, Position(0, 0, 0, 9)) is None

    def test_resolve_chapter(self, sample_document):
        assert resolve_chapter(sample_document, Position(1, 0, 0, 0)).title == "Two"
        assert resolve_chapter(sample_document, Position(2, 0, 0, 0)) is None


class TestIsAtEnd:

    def test_last_word(self, sample_document):
        assert is_at_end(sample_document, LAST)

    def test_not_at_end(self, sample_document):
        assert not is_at_end(sample_document, START)
        assert not is_at_end(sample_document, Position(1, 1, 0, 0))

    def test_empty_document_is_at_end(self, empty_document):
        assert is_at_end(empty_document, START)

    def test_hand_built_empty_last_chapter(self):
        doc = Document(title="x", chapters=(Chapter(paragraphs=()),))
        assert is_at_end(doc, START)

    def test_hand_built_empty_last_paragraph(self):
        doc = Document(title="x", chapters=(Chapter(paragraphs=(Paragraph(),)),))
        assert is_at_end(doc, START)

    def test_hand_built_empty_last_sentence(self):
        doc = Document(title="x", chapters=(
            Chapter(paragraphs=(Paragraph(sentences=(Sentence(),)),)),
        ))
        assert is_at_end(doc, START)


class TestAdvanceOne:

    def test_within_sentence(self, sample_document):
        result = advance_one(sample_document, START)
        assert result.position == Position(0, 0, 0, 1)
        assert not result.paragraph_break
        assert not result.chapter_break

    def test_across_sentence(self, sample_document):
        result = advance_one(sample_document, Position(0, 0, 0, 2))
        assert result.position == Position(0, 0, 1, 0)
        assert not result.paragraph_break

    def test_across_paragraph(self, sample_document):
        result = advance_one(sample_document, Position(0, 0, 1, 2))
        assert result.position == Position(0, 1, 0, 0)
        assert result.paragraph_break
        assert not result.chapter_break

    def test_across_chapter(self, sample_document):
        result = advance_one(sample_document, Position(0, 1, 1, 0))
        assert result.position == Position(1, 0, 0, 0)
        assert result.paragraph_break
        assert result.chapter_break

    def test_at_end_is_unchanged(self, sample_document):
        result = advance_one(sample_document, LAST)
        assert result.position == LAST
        assert not result.paragraph_break
        assert not result.chapter_break

    def test_unresolvable_position_is_unchanged(self, sample_document):
        pos = Position(9, 9, 9, 9)
        assert advance_one(sample_document, pos).position == pos

    def test_walk_visits_every_word_once(self, sample_document):
        texts = [resolve_word(sample_document, START).text]
        pos = START
        while not is_at_end(sample_document, pos):
            pos = advance_one(sample_document, pos).position
            texts.append(resolve_word(sample_document, pos).text)
        assert len(texts) == 17
        assert texts[-2:] == ["Final", "words."]


class TestRetreatOne:

    def test_within_sentence(self, sample_document):
        assert retreat_one(sample_document, Position(0, 0, 0, 2)) == Position(0, 0, 0, 1)

    def test_borrows_last_word_of_previous_sentence(self, sample_document):
        assert retreat_one(sample_document, Position(0, 0, 1, 0)) == Position(0, 0, 0, 2)

    def test_borrows_across_paragraph(self, sample_document):
        assert retreat_one(sample_document, Position(0, 1, 0, 0)) == Position(0, 0, 1, 2)

    def test_borrows_across_chapter(self, sample_document):
        assert retreat_one(sample_document, Position(1, 0, 0, 0)) == Position(0, 1, 1, 0)

    def test_at_start_is_unchanged(self, sample_document):
        assert retreat_one(sample_document, START) == START

    def test_inverse_of_advance(self, sample_document):
        pos = START
        while not is_at_end(sample_document, pos):
            following = advance_one(sample_document, pos).position
            assert retreat_one(sample_document, following) == pos
            pos = following


class TestStepSentence:

    def test_forward_within_paragraph(self, sample_document):
        assert step_sentence(sample_document, Position(0, 0, 0, 1), 1) == Position(0, 0, 1, 0)

    def test_forward_across_paragraph(self, sample_document):
        assert step_sentence(sample_document, Position(0, 0, 1, 1), 1) == Position(0, 1, 0, 0)

    def test_forward_across_chapter(self, sample_document):
        assert step_sentence(sample_document, Position(0, 1, 1, 0), 1) == Position(1, 0, 0, 0)

    def test_forward_at_last_sentence_is_unchanged(self, sample_document):
        assert step_sentence(sample_document, LAST, 1) == LAST

    def test_backward_mid_sentence_goes_to_sentence_start(self, sample_document):
        assert step_sentence(sample_document, Position(0, 0, 1, 2), -1) == Position(0, 0, 1, 0)

    def test_backward_from_sentence_start(self, sample_document):
        assert step_sentence(sample_document, Position(0, 0, 1, 0), -1) == Position(0, 0, 0, 0)

    def test_backward_across_paragraph_lands_on_last_sentence(self, sample_document):
        assert step_sentence(sample_document, Position(0, 1, 0, 0), -1) == Position(0, 0, 1, 0)

    def test_backward_across_chapter_lands_on_last_sentence(self, sample_document):
        assert step_sentence(sample_document, Position(1, 0, 0, 0), -1) == Position(0, 1, 1, 0)

    def test_backward_at_start_is_unchanged(self, sample_document):
        assert step_sentence(sample_document, START, -1) == START


class TestStepParagraph:

    def test_forward(self, sample_document):
        assert step_paragraph(sample_document, Position(0, 0, 1, 2), 1) == Position(0, 1, 0, 0)

    def test_forward_across_chapter(self, sample_document):
        assert step_paragraph(sample_document, Position(0, 1, 0, 1), 1) == Position(1, 0, 0, 0)

    def test_forward_at_last_paragraph_is_unchanged(self, sample_document):
        pos = Position(1, 1, 0, 0)
        assert step_paragraph(sample_document, pos, 1) == pos

    def test_backward(self, sample_document):
        assert step_paragraph(sample_document, Position(0, 1, 1, 0), -1) == Position(0, 0, 0, 0)

    def test_backward_across_chapter_lands_on_last_paragraph_start(self, sample_document):
        # Unlike step_sentence, the sentence index resets to 0
        assert step_paragraph(sample_document, Position(1, 0, 0, 0), -1) == Position(0, 1, 0, 0)

    def test_backward_at_start_is_unchanged(self, sample_document):
        assert step_paragraph(sample_document, START, -1) == START


class TestLinearIndex:

    def test_total_words(self, sample_document, empty_document):
        assert total_words(sample_document) == 17
        assert total_words(empty_document) == 0

    def test_linear_index_of(self, sample_document):
        assert linear_index_of(sample_document, START) == 0
        assert linear_index_of(sample_document, Position(0, 0, 1, 0)) == 3
        assert linear_index_of(sample_document, Position(1, 0, 0, 0)) == 10
        assert linear_index_of(sample_document, LAST) == 16

    def test_word_at_linear_index(self, sample_document):
        assert word_at_linear_index(sample_document, 0) == START
        assert word_at_linear_index(sample_document, 9) == Position(0, 1, 1, 0)
        assert word_at_linear_index(sample_document, 10) == Position(1, 0, 0, 0)

    def test_word_at_linear_index_clamps(self, sample_document):
        assert word_at_linear_index(sample_document, -5) == START
        assert word_at_linear_index(sample_document, 100) == LAST

    def test_word_at_linear_index_empty_document(self, empty_document):
        assert word_at_linear_index(empty_document, 3) == START

    def test_inverse_for_every_index(self, sample_document):
        for index in range(17):
            pos = word_at_linear_index(sample_document, index)
            assert linear_index_of(sample_document, pos) == index


class TestEmptyUnits:
    """Hand-built documents with empty chapters, paragraphs and sentences."""

    def test_last_word_ignores_trailing_empty_units(self, gappy_document, gappy_positions):
        assert last_position(gappy_document) == gappy_positions[-1]
        assert is_at_end(gappy_document, gappy_positions[-1])
        assert not is_at_end(gappy_document, gappy_positions[-2])

    def test_first_position_skips_empty_leading_chapter(self):
        doc = Document(title="x", chapters=(
            Chapter(),
            Chapter(paragraphs=(
                Paragraph(sentences=(Sentence(), Sentence(words=(tokenize("Hi."),)))),
            )),
        ))
        assert first_position(doc) == Position(1, 0, 1, 0)

    def test_advance_walks_only_real_words(self, gappy_document, gappy_positions):
        visited = [START]
        pos = START
        while not is_at_end(gappy_document, pos):
            pos = advance_one(gappy_document, pos).position
            visited.append(pos)
        assert visited == gappy_positions
        assert all(resolve_word(gappy_document, p) is not None for p in visited)

    def test_advance_break_flags_across_empty_units(self, gappy_document):
        over_sentence = advance_one(gappy_document, Position(0, 0, 0, 1))
        assert over_sentence.position == Position(0, 0, 2, 0)
        assert not over_sentence.paragraph_break

        over_paragraph = advance_one(gappy_document, Position(0, 0, 2, 0))
        assert over_paragraph.position == Position(0, 2, 1, 0)
        assert over_paragraph.paragraph_break
        assert not over_paragraph.chapter_break

        over_chapter = advance_one(gappy_document, Position(0, 2, 1, 0))
        assert over_chapter.position == Position(2, 0, 0, 0)
        assert over_chapter.paragraph_break
        assert over_chapter.chapter_break

    def test_advance_before_trailing_empty_chapter(self, gappy_document, gappy_positions):
        last = gappy_positions[-1]
        assert advance_one(gappy_document, last).position == last

    def test_retreat_across_empty_chapter(self, gappy_document):
        assert retreat_one(gappy_document, Position(2, 0, 0, 0)) == Position(0, 2, 1, 0)

    def test_retreat_is_inverse_of_advance(self, gappy_document, gappy_positions):
        for previous, following in zip(gappy_positions, gappy_positions[1:]):
            assert retreat_one(gappy_document, following) == previous
        assert retreat_one(gappy_document, gappy_positions[0]) == gappy_positions[0]

    def test_step_sentence_skips_empty_sentences(self, gappy_document):
        assert step_sentence(gappy_document, Position(0, 0, 0, 1), 1) == Position(0, 0, 2, 0)
        assert step_sentence(gappy_document, Position(0, 0, 2, 0), -1) == Position(0, 0, 0, 0)

    def test_step_sentence_skips_empty_paragraphs_and_chapters(self, gappy_document):
        assert step_sentence(gappy_document, Position(0, 2, 1, 0), -1) == Position(0, 0, 2, 0)
        assert step_sentence(gappy_document, Position(0, 2, 1, 0), 1) == Position(2, 0, 0, 0)
        assert step_sentence(gappy_document, Position(2, 0, 0, 0), -1) == Position(0, 2, 1, 0)

    def test_step_sentence_forward_before_trailing_empty_units(self, gappy_document):
        pos = Position(2, 1, 0, 1)
        assert step_sentence(gappy_document, pos, 1) == pos

    def test_step_paragraph_skips_empty_paragraphs(self, gappy_document):
        assert step_paragraph(gappy_document, Position(0, 0, 2, 0), 1) == Position(0, 2, 1, 0)
        assert step_paragraph(gappy_document, Position(0, 2, 1, 0), -1) == Position(0, 0, 0, 0)

    def test_step_paragraph_back_into_empty_chapter(self, gappy_document):
        # Chapter 1 is empty; lands on chapter 0's last paragraph with words
        assert step_paragraph(gappy_document, Position(2, 0, 0, 0), -1) == Position(0, 2, 1, 0)

    def test_step_paragraph_forward_before_trailing_empty_chapter(self, gappy_document):
        pos = Position(2, 1, 0, 0)
        assert step_paragraph(gappy_document, pos, 1) == pos

    def test_linear_index_round_trip(self, gappy_document, gappy_positions):
        assert total_words(gappy_document) == 7
        for index, pos in enumerate(gappy_positions):
            assert word_at_linear_index(gappy_document, index) == pos
            assert linear_index_of(gappy_document, pos) == index
        assert word_at_linear_index(gappy_document, 100) == gappy_positions[-1]

    def test_chapter_start(self, gappy_document, gappy_positions):
        assert chapter_start(gappy_document, 0) == START
        assert chapter_start(gappy_document, 1) == Position(2, 0, 0, 0)
        assert chapter_start(gappy_document, 3) == gappy_positions[-1]
        assert chapter_start(Document(title="x"), 0) == START
