import re

from improvepdf.images.models import ChosenImage
from improvepdf.text.markdown import Section

_HEADING_LINE = re.compile(r"^#{1,6}\s+")


def build_image_markdown(image: ChosenImage) -> str:
    title = f' "{image.caption.replace(chr(34), chr(39))}"' if image.caption else ""
    return f"![{image.candidate.alt}]({image.candidate.url}{title})"


def inject_images(sections: list[Section], images: list[ChosenImage]) -> str:
    """Insert each image right after its section's heading line."""
    by_section: dict[str, list[ChosenImage]] = {}
    for image in images:
        by_section.setdefault(image.section_id, []).append(image)

    chunks: list[str] = []
    for section in sections:
        content = section.content.strip("\n")
        chosen = by_section.get(section.id, [])
        if not chosen:
            chunks.append(content)
            continue
        figures = [build_image_markdown(image) for image in chosen]
        head, _, body = content.partition("\n")
        if _HEADING_LINE.match(head):
            parts = [head, *figures, body.strip("\n")]
        else:
            parts = [*figures, content]
        chunks.append("\n\n".join(part for part in parts if part))
    return "\n\n".join(chunk for chunk in chunks if chunk) + "\n"
