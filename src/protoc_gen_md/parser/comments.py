"""Index of source comments keyed by structural path."""

from __future__ import annotations

from typing import Dict, Iterable, Optional

from google.protobuf import descriptor_pb2

from protoc_gen_md.models import Comment, StructuralPath


class CommentIndex:
    """Lookup from a declaration's structural path to its comments."""

    def __init__(self, comments: Optional[Dict[StructuralPath, Comment]] = None):
        self._comments: Dict[StructuralPath, Comment] = dict(comments or {})

    @classmethod
    def from_locations(
        cls,
        locations: Iterable[descriptor_pb2.SourceCodeInfo.Location],
    ) -> CommentIndex:
        comments: Dict[StructuralPath, Comment] = {}
        for location in locations:
            path = tuple(location.path)
            # protoc may emit several locations for one path; the first one
            # carrying text wins.
            if path in comments:
                continue
            if not (location.leading_comments or location.trailing_comments):
                continue
            comments[path] = Comment(
                leading=location.leading_comments,
                trailing=location.trailing_comments,
            )
        return cls(comments)

    @classmethod
    def from_file(cls, proto: descriptor_pb2.FileDescriptorProto) -> CommentIndex:
        """Build the index of one file; files without source info give an empty index."""
        if not proto.HasField("source_code_info"):
            return cls()
        return cls.from_locations(proto.source_code_info.location)

    def lookup(self, path: StructuralPath) -> Comment:
        """Return the comments at ``path``, or an empty Comment if there are none."""
        comment = self._comments.get(tuple(path))
        if comment is None:
            return Comment()
        return comment

    def __len__(self) -> int:
        return len(self._comments)

    def __contains__(self, path: object) -> bool:
        return path in self._comments
