import io

import pytest

from docassembly.build import (
    DocumentPart,
    FilePart,
    HtmlPart,
    InstructionCompiler,
    NewPagePart,
    PageRange,
    actions,
    outputs,
)
from docassembly.exceptions import ValidationError


class TestKeyAllocation:
    def test_keys_follow_insertion_order(self) -> None:
        compiler = InstructionCompiler()
        compiler.add_part(FilePart(b"%PDF a"))
        compiler.add_part(HtmlPart(b"<p>cover</p>", assets=(b"body{}", b"\x89PNG")))
        compiler.add_part(FilePart(b"%PDF b"))

        compiled = compiler.compile()

        assert list(compiled.files) == ["file0", "html1", "asset2", "asset3", "file4"]
        assert compiled.instructions["parts"] == [
            {"file": "file0"},
            {"html": "html1", "assets": ["asset2", "asset3"]},
            {"file": "file4"},
        ]

    def test_registry_holds_original_inputs(self) -> None:
        compiler = InstructionCompiler()
        stream = io.BytesIO(b"%PDF stream")
        compiler.add_part(FilePart(stream))

        assert compiler.compile().files == {"file0": stream}

    def test_new_page_takes_no_key(self) -> None:
        compiler = InstructionCompiler()
        compiler.add_part(NewPagePart(page_count=2))
        compiler.add_part(FilePart(b"%PDF"))

        compiled = compiler.compile()

        assert compiled.instructions["parts"] == [
            {"page": "new", "pageCount": 2},
            {"file": "file0"},
        ]

    def test_action_files_share_the_counter(self) -> None:
        compiler = InstructionCompiler()
        compiler.add_part(
            FilePart(b"%PDF", actions=(actions.watermark_image(b"\x89PNG", opacity=0.3),))
        )
        compiler.add_action(actions.apply_xfdf(b"<xfdf/>"))
        compiler.add_part(FilePart(b"%PDF 2"))

        compiled = compiler.compile()

        assert list(compiled.files) == ["file0", "file1", "file2", "file3"]
        assert compiled.instructions["parts"][0]["actions"] == [  # type: ignore[index]
            {
                "type": "watermark",
                "width": {"value": 100, "unit": "%"},
                "height": {"value": 100, "unit": "%"},
                "opacity": 0.3,
                "image": "file1",
            }
        ]
        assert compiled.instructions["actions"] == [{"type": "applyXfdf", "file": "file2"}]


class TestNodeShapes:
    def test_file_part_options(self) -> None:
        compiler = InstructionCompiler()
        compiler.add_part(
            FilePart(
                b"%PDF",
                pages=PageRange(1, -1),
                password="pw",
                content_type="application/pdf",
                actions=(actions.rotate(90),),
            )
        )

        assert compiler.compile().instructions["parts"] == [
            {
                "file": "file0",
                "pages": {"start": 1, "end": -1},
                "password": "pw",
                "content_type": "application/pdf",
                "actions": [{"type": "rotate", "rotateBy": 90}],
            }
        ]

    def test_document_part(self) -> None:
        compiler = InstructionCompiler()
        compiler.add_part(DocumentPart("doc_123", layer="review", pages=PageRange(0, 0)))

        compiled = compiler.compile()

        assert compiled.files == {}
        assert compiled.instructions["parts"] == [
            {"document": {"id": "doc_123", "layer": "review"}, "pages": {"start": 0, "end": 0}}
        ]

    def test_new_page_layout(self) -> None:
        compiler = InstructionCompiler()
        compiler.add_part(NewPagePart(layout={"orientation": "landscape", "size": "A4"}))

        assert compiler.compile().instructions["parts"] == [
            {"page": "new", "pageCount": 1, "layout": {"orientation": "landscape", "size": "A4"}}
        ]

    def test_new_page_count_must_be_positive(self) -> None:
        compiler = InstructionCompiler()
        with pytest.raises(ValidationError, match="New page count must be at least 1"):
            compiler.add_part(NewPagePart(page_count=0))


class TestCompile:
    def test_requires_a_part(self) -> None:
        with pytest.raises(
            ValidationError, match="At least one part must be added to build a document"
        ):
            InstructionCompiler().compile()

    def test_defaults_to_pdf_output(self) -> None:
        compiler = InstructionCompiler()
        compiler.add_part(FilePart(b"%PDF"))

        instructions = compiler.compile().instructions

        assert instructions["output"] == {"type": "pdf"}
        assert "actions" not in instructions

    def test_uses_selected_output(self) -> None:
        compiler = InstructionCompiler()
        compiler.add_part(FilePart(b"%PDF"))
        compiler.set_output(outputs.markdown())

        assert compiler.compile().instructions["output"] == {"type": "markdown"}

    def test_compiling_twice_is_stable(self) -> None:
        compiler = InstructionCompiler()
        compiler.add_part(FilePart(b"%PDF", actions=(actions.ocr("english"),)))
        compiler.add_action(actions.flatten())

        first = compiler.compile()
        second = compiler.compile()

        assert first.instructions == second.instructions
        assert first.files == second.files

    def test_compiled_tree_is_a_copy(self) -> None:
        compiler = InstructionCompiler()
        compiler.add_part(FilePart(b"%PDF"))

        parts = compiler.compile().instructions["parts"]
        parts.append({"file": "bogus"})  # type: ignore[attr-defined]

        assert compiler.compile().instructions["parts"] == [{"file": "file0"}]


class TestRejectedRegistrations:
    def test_invalid_part_input_allocates_nothing(self) -> None:
        compiler = InstructionCompiler()
        compiler.add_part(FilePart(b"%PDF"))

        with pytest.raises(ValidationError, match="Invalid file input provided"):
            compiler.add_part(HtmlPart(b"<p/>", assets=(b"css", 42)))  # type: ignore[arg-type]
        compiler.add_part(FilePart(b"%PDF 2"))

        compiled = compiler.compile()
        assert list(compiled.files) == ["file0", "file1"]
        assert compiler.part_count == 2

    def test_action_without_file_allocates_nothing(self) -> None:
        compiler = InstructionCompiler()
        compiler.add_part(FilePart(b"%PDF"))

        with pytest.raises(ValidationError, match="requires a file"):
            compiler.add_action(actions.Action(actions.ActionKind.APPLY_INSTANT_JSON))

        assert "actions" not in compiler.compile().instructions

    def test_unknown_scope(self) -> None:
        with pytest.raises(ValidationError, match="Unknown action scope"):
            InstructionCompiler().add_action(actions.flatten(), scope="page")
