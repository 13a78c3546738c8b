"""Data models for books, chapters, users and purchases."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional


def utcnow() -> datetime:
    """Timezone-aware current time used for created_at stamps."""
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class Section:
    """A navigable level-2 heading inside a chapter."""

    text: str
    level: int
    escaped_text: str

    def to_dict(self) -> Dict[str, Any]:
        return {'text': self.text, 'level': self.level, 'escaped_text': self.escaped_text}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Section':
        return cls(
            text=data.get('text', ''),
            level=data.get('level', 2),
            escaped_text=data.get('escaped_text', '')
        )


@dataclass
class ChapterLink:
    """Table-of-contents entry attached to a Book by BookRepository.get_by_slug."""

    title: str
    slug: str
    order: int

    def to_dict(self) -> Dict[str, Any]:
        return {'title': self.title, 'slug': self.slug, 'order': self.order}


@dataclass
class Book:
    """A book whose chapters are synced from a GitHub repository."""

    name: str
    slug: str
    github_repo: str  # "owner/repo"
    price: float
    id: Any = None
    github_last_commit_sha: Optional[str] = None
    created_at: datetime = field(default_factory=utcnow)
    chapters: List[ChapterLink] = field(default_factory=list)

    def to_document(self) -> Dict[str, Any]:
        """Serialize to a store document. Read-side chapters are not stored."""
        document = {
            'name': self.name,
            'slug': self.slug,
            'github_repo': self.github_repo,
            'github_last_commit_sha': self.github_last_commit_sha,
            'price': self.price,
            'created_at': self.created_at
        }
        if self.id is not None:
            document['_id'] = self.id
        return document

    @classmethod
    def from_document(cls, document: Dict[str, Any]) -> 'Book':
        return cls(
            id=document.get('_id'),
            name=document['name'],
            slug=document['slug'],
            github_repo=document.get('github_repo', ''),
            price=document.get('price', 0),
            github_last_commit_sha=document.get('github_last_commit_sha'),
            created_at=document.get('created_at') or utcnow()
        )

    def to_dict(self) -> Dict[str, Any]:
        data = self.to_document()
        data.pop('_id', None)
        data['id'] = str(self.id) if self.id is not None else None
        data['created_at'] = self.created_at.isoformat()
        data['chapters'] = [chapter.to_dict() for chapter in self.chapters]
        return data


@dataclass
class Chapter:
    """A chapter rendered from one markdown file of the book repository."""

    book_id: Any
    title: str
    slug: str
    github_file_path: str
    order: int
    id: Any = None
    is_free: bool = False
    content: str = ''
    html_content: str = ''
    excerpt: str = ''
    html_excerpt: str = ''
    sections: List[Section] = field(default_factory=list)
    seo_title: str = ''
    seo_description: str = ''
    created_at: datetime = field(default_factory=utcnow)

    def to_document(self) -> Dict[str, Any]:
        document = {
            'book_id': self.book_id,
            'title': self.title,
            'slug': self.slug,
            'github_file_path': self.github_file_path,
            'order': self.order,
            'is_free': self.is_free,
            'content': self.content,
            'html_content': self.html_content,
            'excerpt': self.excerpt,
            'html_excerpt': self.html_excerpt,
            'sections': [section.to_dict() for section in self.sections],
            'seo_title': self.seo_title,
            'seo_description': self.seo_description,
            'created_at': self.created_at
        }
        if self.id is not None:
            document['_id'] = self.id
        return document

    @classmethod
    def from_document(cls, document: Dict[str, Any]) -> 'Chapter':
        return cls(
            id=document.get('_id'),
            book_id=document['book_id'],
            title=document['title'],
            slug=document['slug'],
            github_file_path=document.get('github_file_path', ''),
            order=document.get('order', 0),
            is_free=document.get('is_free', False),
            content=document.get('content', ''),
            html_content=document.get('html_content', ''),
            excerpt=document.get('excerpt', ''),
            html_excerpt=document.get('html_excerpt', ''),
            sections=[Section.from_dict(s) for s in document.get('sections', [])],
            seo_title=document.get('seo_title', ''),
            seo_description=document.get('seo_description', ''),
            created_at=document.get('created_at') or utcnow()
        )

    def to_dict(self) -> Dict[str, Any]:
        data = self.to_document()
        data.pop('_id', None)
        data['id'] = str(self.id) if self.id is not None else None
        data['book_id'] = str(self.book_id)
        data['created_at'] = self.created_at.isoformat()
        return data


@dataclass
class User:
    """A reader or admin signed in with Google."""

    google_id: str
    email: str
    slug: str
    id: Any = None
    display_name: str = ''
    avatar_url: str = ''
    is_admin: bool = False
    is_github_connected: bool = False
    github_access_token: Optional[str] = None
    google_token: Dict[str, Any] = field(default_factory=dict)
    purchased_book_ids: List[str] = field(default_factory=list)
    created_at: datetime = field(default_factory=utcnow)

    PUBLIC_FIELDS = (
        'id', 'display_name', 'email', 'slug', 'is_github_connected',
        'is_admin', 'avatar_url', 'purchased_book_ids'
    )

    def to_document(self) -> Dict[str, Any]:
        document = {
            'google_id': self.google_id,
            'email': self.email,
            'slug': self.slug,
            'display_name': self.display_name,
            'avatar_url': self.avatar_url,
            'is_admin': self.is_admin,
            'is_github_connected': self.is_github_connected,
            'github_access_token': self.github_access_token,
            'google_token': dict(self.google_token),
            'purchased_book_ids': list(self.purchased_book_ids),
            'created_at': self.created_at
        }
        if self.id is not None:
            document['_id'] = self.id
        return document

    @classmethod
    def from_document(cls, document: Dict[str, Any]) -> 'User':
        return cls(
            id=document.get('_id'),
            google_id=document['google_id'],
            email=document['email'],
            slug=document['slug'],
            display_name=document.get('display_name', ''),
            avatar_url=document.get('avatar_url', ''),
            is_admin=document.get('is_admin', False),
            is_github_connected=document.get('is_github_connected', False),
            github_access_token=document.get('github_access_token'),
            google_token=document.get('google_token') or {},
            purchased_book_ids=list(document.get('purchased_book_ids') or []),
            created_at=document.get('created_at') or utcnow()
        )

    def public_dict(self) -> Dict[str, Any]:
        """Fields safe to hand to the client; tokens are never included."""
        data = {name: getattr(self, name) for name in self.PUBLIC_FIELDS}
        data['id'] = str(self.id) if self.id is not None else None
        return data


@dataclass
class Purchase:
    """A book purchase; `pending` while the charge is in flight."""

    user_id: Any
    book_id: Any
    amount: int  # cents
    id: Any = None
    charge: Dict[str, Any] = field(default_factory=dict)
    pending: bool = False
    created_at: datetime = field(default_factory=utcnow)

    def to_document(self) -> Dict[str, Any]:
        document = {
            'user_id': self.user_id,
            'book_id': self.book_id,
            'amount': self.amount,
            'charge': dict(self.charge),
            'pending': self.pending,
            'created_at': self.created_at
        }
        if self.id is not None:
            document['_id'] = self.id
        return document

    @classmethod
    def from_document(cls, document: Dict[str, Any]) -> 'Purchase':
        return cls(
            id=document.get('_id'),
            user_id=document['user_id'],
            book_id=document['book_id'],
            amount=document.get('amount', 0),
            charge=document.get('charge') or {},
            pending=bool(document.get('pending', False)),
            created_at=document.get('created_at') or utcnow()
        )


@dataclass
class ChapterFile:
    """One source file after front-matter parsing, ready for chapter sync."""

    attributes: Dict[str, Any]
    body: str
    path: str


@dataclass(frozen=True)
class ReaderContext:
    """Identity of the reader making a request; passed explicitly per call."""

    user_id: Any = None
    is_admin: bool = False

    @classmethod
    def for_user(cls, user: Optional[User]) -> 'ReaderContext':
        if user is None:
            return cls()
        return cls(user_id=user.id, is_admin=user.is_admin)


__all__ = [
    'Section',
    'ChapterLink',
    'Book',
    'Chapter',
    'User',
    'Purchase',
    'ChapterFile',
    'ReaderContext',
    'utcnow'
]
