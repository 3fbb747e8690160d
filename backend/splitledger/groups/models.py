"""Group models."""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from splitledger.errors import NotFound, ValidationError
from splitledger.utils.documents import isoformat as _iso, to_document_id as _oid, utcnow
from splitledger.utils.enums import GroupState, MemberRole
from splitledger.utils.permissions import member_identity_of, same_identity
from splitledger.utils.validators import clean_text

NAME_MAX_LENGTH = 100
DESCRIPTION_MAX_LENGTH = 500


@dataclass
class GroupMember:
    user: str
    role: str = MemberRole.MEMBER.value
    joined_at: datetime = field(default_factory=utcnow)

    def to_document(self) -> Dict[str, Any]:
        return {"user": _oid(self.user), "role": self.role, "joinedAt": self.joined_at}

    def to_dict(self) -> Dict[str, Any]:
        return {"user": self.user, "role": self.role, "joinedAt": _iso(self.joined_at)}


@dataclass
class Group:
    name: str
    created_by: str
    members: List[GroupMember]
    description: str = ""
    state: str = GroupState.ACTIVE.value
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)
    id: Optional[str] = None
    version: int = 0

    @classmethod
    def create(
        cls,
        name: Any,
        created_by: str,
        description: Any = "",
        member_ids: Iterable[Any] = (),
    ) -> "Group":
        """New group with the creator as its first admin."""
        creator = member_identity_of(created_by)
        group = cls(
            name=clean_text(name, "name", NAME_MAX_LENGTH),
            description=clean_text(description, "description", DESCRIPTION_MAX_LENGTH, required=False),
            created_by=creator,
            members=[GroupMember(user=creator, role=MemberRole.ADMIN.value)],
        )
        for member_id in member_ids:
            if not group.is_member(member_id):
                group.members.append(GroupMember(user=member_identity_of(member_id)))
        return group

    @property
    def is_active(self) -> bool:
        return self.state == GroupState.ACTIVE.value

    @property
    def member_ids(self) -> List[str]:
        return [member_identity_of(m) for m in self.members]

    def _find(self, identity) -> Optional[GroupMember]:
        return next((m for m in self.members if same_identity(m, identity)), None)

    def is_member(self, identity) -> bool:
        return self._find(identity) is not None

    def is_admin(self, identity) -> bool:
        member = self._find(identity)
        return member is not None and member.role == MemberRole.ADMIN.value

    def add_member(self, identity, role: str = MemberRole.MEMBER.value) -> GroupMember:
        if self.is_member(identity):
            raise ValidationError("User is already a member of this group", field="member")
        member = GroupMember(user=member_identity_of(identity), role=self._validate_role(role))
        self.members.append(member)
        self.updated_at = utcnow()
        return member

    def remove_member(self, identity) -> None:
        member = self._find(identity)
        if member is None:
            raise NotFound("Member not found in this group")
        self.members.remove(member)
        self.updated_at = utcnow()

    def update_role(self, identity, role: str) -> None:
        member = self._find(identity)
        if member is None:
            raise NotFound("Member not found in this group")
        member.role = self._validate_role(role)
        self.updated_at = utcnow()

    def rename(self, name: Any = None, description: Any = None) -> None:
        if name is not None:
            self.name = clean_text(name, "name", NAME_MAX_LENGTH)
        if description is not None:
            self.description = clean_text(description, "description", DESCRIPTION_MAX_LENGTH, required=False)
        self.updated_at = utcnow()

    def archive(self) -> None:
        self.state = GroupState.ARCHIVED.value
        self.updated_at = utcnow()

    @staticmethod
    def _validate_role(role: str) -> str:
        try:
            return MemberRole(role).value
        except ValueError:
            raise ValidationError("Role must be either member or admin", field="role")

    def to_document(self) -> Dict[str, Any]:
        doc = {
            "name": self.name,
            "description": self.description,
            "createdBy": _oid(self.created_by),
            "members": [m.to_document() for m in self.members],
            "state": self.state,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
            "version": self.version,
        }
        if self.id:
            doc["_id"] = _oid(self.id)
        return doc

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> "Group":
        return cls(
            id=member_identity_of(doc.get("_id")),
            name=doc.get("name", ""),
            description=doc.get("description", ""),
            created_by=member_identity_of(doc.get("createdBy")),
            members=[
                GroupMember(
                    user=member_identity_of(m),
                    role=m.get("role", MemberRole.MEMBER.value),
                    joined_at=m.get("joinedAt"),
                )
                for m in doc.get("members", [])
            ],
            state=doc.get("state", GroupState.ACTIVE.value),
            created_at=doc.get("createdAt"),
            updated_at=doc.get("updatedAt"),
            version=int(doc.get("version", 0)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "_id": self.id,
            "name": self.name,
            "description": self.description,
            "createdBy": self.created_by,
            "members": [m.to_dict() for m in self.members],
            "memberCount": len(self.members),
            "state": self.state,
            "isActive": self.is_active,
            "createdAt": _iso(self.created_at),
            "updatedAt": _iso(self.updated_at),
        }
