from dataclasses import asdict, dataclass


@dataclass(frozen=True)
class ImageCandidate:
    url: str
    width: int
    height: int
    source: str
    author: str | None = None
    profile: str | None = None
    license: str | None = None
    required_attribution: bool = True
    alt: str = ""


@dataclass(frozen=True)
class ChosenImage:
    """A candidate assigned to a Markdown section."""

    section_id: str
    candidate: ImageCandidate
    caption: str
    after_heading: bool = True

    def to_dict(self) -> dict[str, object]:
        candidate = asdict(self.candidate)
        return {
            "sectionId": self.section_id,
            "url": candidate["url"],
            "width": candidate["width"],
            "height": candidate["height"],
            "source": candidate["source"],
            "author": candidate["author"],
            "profile": candidate["profile"],
            "license": candidate["license"],
            "requiredAttribution": candidate["required_attribution"],
            "alt": candidate["alt"],
            "caption": self.caption,
            "placement": {"afterHeading": self.after_heading},
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ChosenImage":
        placement = data.get("placement") or {}
        return cls(
            section_id=str(data.get("sectionId", "")),
            candidate=ImageCandidate(
                url=str(data.get("url", "")),
                width=int(data.get("width") or 0),
                height=int(data.get("height") or 0),
                source=str(data.get("source", "")),
                author=data.get("author"),
                profile=data.get("profile"),
                license=data.get("license"),
                required_attribution=bool(data.get("requiredAttribution", True)),
                alt=str(data.get("alt", "")),
            ),
            caption=str(data.get("caption", "")),
            after_heading=bool(placement.get("afterHeading", True)),
        )
