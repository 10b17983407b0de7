"""
services.idcard_service - Render a student ID card as PNG.

Card layout (pixels, 85.6 × 54 mm at ~300 dpi):
  header band with the school name, photo on the left, student
  details on the right, hierarchy line at the foot.
"""

from __future__ import annotations

import io
import logging

from PIL import Image, ImageDraw, ImageFont

from services.photo_service import PhotoError, load_photo

logger = logging.getLogger(__name__)

CARD_SIZE = (1012, 638)
HEADER_HEIGHT = 120
HEADER_COLOR = (23, 63, 122)
PHOTO_BOX = (40, 150, 40 + 270, 150 + 360)     # left, top, right, bottom


def _font(size: int) -> ImageFont.ImageFont:
    try:
        return ImageFont.truetype("DejaVuSans.ttf", size)
    except OSError:
        return ImageFont.load_default(size)


def _truncate(text: str, max_len: int) -> str:
    """Truncate text with ellipsis if too long."""
    if not text:
        return ""
    return text[:max_len - 1] + "…" if len(text) > max_len else text


def _photo_or_placeholder(student) -> Image.Image:
    size = (PHOTO_BOX[2] - PHOTO_BOX[0], PHOTO_BOX[3] - PHOTO_BOX[1])
    if student.photo_path:
        try:
            img = Image.open(io.BytesIO(load_photo(student.photo_path))).convert("RGB")
            return img.resize(size)
        except (PhotoError, OSError) as exc:
            logger.warning("Photo for %s unavailable: %s", student.srn_no, exc)

    placeholder = Image.new("RGB", size, (225, 225, 225))
    draw = ImageDraw.Draw(placeholder)
    draw.text((size[0] // 2, size[1] // 2), "NO PHOTO", fill=(120, 120, 120),
              font=_font(28), anchor="mm")
    return placeholder


def render_id_card(student) -> bytes:
    """Return PNG bytes of the student's ID card."""
    school = student.school
    block = school.block if school else None
    district = block.district if block else None
    state = district.state if district else None

    card = Image.new("RGB", CARD_SIZE, "white")
    draw = ImageDraw.Draw(card)

    draw.rectangle((0, 0, CARD_SIZE[0], HEADER_HEIGHT), fill=HEADER_COLOR)
    draw.text((CARD_SIZE[0] // 2, HEADER_HEIGHT // 2),
              _truncate(school.name if school else "", 40),
              fill="white", font=_font(44), anchor="mm")

    card.paste(_photo_or_placeholder(student), PHOTO_BOX[:2])
    draw.rectangle(PHOTO_BOX, outline=(90, 90, 90), width=2)

    x = PHOTO_BOX[2] + 40
    label_font, value_font = _font(26), _font(34)
    lines = (
        ("Name", _truncate(student.student_name, 28)),
        ("SRN No", student.srn_no),
        ("Class", f"{student.class_label} - {student.section}"),
        ("Date of Birth",
         student.date_of_birth.strftime("%d-%m-%Y") if student.date_of_birth else ""),
    )
    y = PHOTO_BOX[1]
    for label, value in lines:
        draw.text((x, y), label, fill=(110, 110, 110), font=label_font)
        draw.text((x, y + 30), value, fill="black", font=value_font)
        y += 90

    footer = " / ".join(n.name for n in (block, district, state) if n is not None)
    draw.text((CARD_SIZE[0] // 2, CARD_SIZE[1] - 40), _truncate(footer, 70),
              fill=(60, 60, 60), font=_font(24), anchor="mm")

    buf = io.BytesIO()
    card.save(buf, format="PNG", dpi=(300, 300))
    return buf.getvalue()
