import base64
import difflib
from io import BytesIO

from docx import Document
from docx.enum.text import WD_COLOR_INDEX
from docx.shared import RGBColor


class RedlineExportService:
    COLOR_ADDED = RGBColor(0x00, 0x50, 0x00)  # dark green on bright green highlight
    COLOR_DELETED = RGBColor(0x99, 0x1B, 0x1B)  # dark red on red highlight, struck through

    def build(self, original: str, revised: str, title: str | None = None) -> str:
        """Render a redline .docx of the two texts. Returns it base64 encoded."""
        doc = Document()
        if title:
            doc.add_heading(title, level=1)

        original_paragraphs = original.split("\n")
        revised_paragraphs = revised.split("\n")

        para_matcher = difflib.SequenceMatcher(
            None, original_paragraphs, revised_paragraphs, autojunk=False
        )

        for tag, i1, i2, j1, j2 in para_matcher.get_opcodes():
            match tag:
                case "equal":
                    for para_text in revised_paragraphs[j1:j2]:
                        doc.add_paragraph(para_text)
                case "delete":
                    for para_text in original_paragraphs[i1:i2]:
                        self._add_deleted(doc.add_paragraph(), para_text)
                case "insert":
                    for para_text in revised_paragraphs[j1:j2]:
                        self._add_added(doc.add_paragraph(), para_text)
                case "replace":
                    for idx in range(max(i2 - i1, j2 - j1)):
                        orig_para = original_paragraphs[i1 + idx] if i1 + idx < i2 else None
                        new_para = revised_paragraphs[j1 + idx] if j1 + idx < j2 else None
                        para = doc.add_paragraph()

                        if orig_para is None:
                            self._add_added(para, new_para)
                        elif new_para is None:
                            self._add_deleted(para, orig_para)
                        else:
                            self._add_char_diff(para, orig_para, new_para)

        return self._doc_to_base64(doc)

    def _add_char_diff(self, para, original: str, revised: str) -> None:
        matcher = difflib.SequenceMatcher(None, original, revised, autojunk=False)

        for tag, i1, i2, j1, j2 in matcher.get_opcodes():
            match tag:
                case "equal":
                    para.add_run(original[i1:i2])
                case "delete":
                    self._add_deleted(para, original[i1:i2])
                case "insert":
                    self._add_added(para, revised[j1:j2])
                case "replace":
                    self._add_deleted(para, original[i1:i2])
                    self._add_added(para, revised[j1:j2])

    def _add_added(self, para, text: str) -> None:
        if not text:
            return
        run = para.add_run(text)
        run.font.color.rgb = self.COLOR_ADDED
        run.font.highlight_color = WD_COLOR_INDEX.BRIGHT_GREEN
        run.font.underline = True

    def _add_deleted(self, para, text: str) -> None:
        if not text:
            return
        run = para.add_run(text)
        run.font.color.rgb = self.COLOR_DELETED
        run.font.highlight_color = WD_COLOR_INDEX.RED
        run.font.strike = True

    def _doc_to_base64(self, doc: Document) -> str:
        buffer = BytesIO()
        doc.save(buffer)
        buffer.seek(0)
        return base64.b64encode(buffer.read()).decode("utf-8")
