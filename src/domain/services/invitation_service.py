"""Invitation service layer with business logic."""

from collections.abc import Callable
from datetime import datetime, timedelta
from uuid import UUID

import structlog
from sqlalchemy.exc import IntegrityError

from core.config import settings
from core.exceptions import (
    AlreadyAMemberError,
    BadRequestError,
    DuplicateInvitationError,
    InvitationAlreadyAcceptedError,
    InvitationEmailMismatchError,
    InvitationExpiredError,
    InvitationNotFoundError,
    InvitationRevokedError,
    PersonalTeamError,
    ProjectNotFoundError,
    TeamNotFoundError,
)
from domain.entities.events import InviteCreated
from domain.entities.invitation import (
    AcceptedInvitation,
    Invitation,
    InvitationClaims,
    InvitationPreview,
    InvitationResult,
    InvitationStatus,
    ResourceType,
)
from domain.entities.project import Project, ProjectMember
from domain.entities.team import Team, TeamMember
from domain.entities.user import normalize_email
from domain.policies.permissions import Action
from domain.policies.roles import Role
from domain.repositories.unit_of_work import IUnitOfWork
from domain.services.access import (
    is_unique_violation,
    require_project_permission,
    require_team_permission,
)
from infrastructure.auth.invitation_tokens import InvitationTokenSigner

logger = structlog.get_logger()


class InvitationService:
    """Service layer for team and project invitations."""

    def __init__(
        self,
        uow_factory: Callable[[], IUnitOfWork],
        signer: InvitationTokenSigner | None = None,
    ) -> None:
        self._uow_factory = uow_factory
        self._signer = signer or InvitationTokenSigner()

    async def create_invitation(
        self,
        resource_type: ResourceType,
        resource_id: UUID,
        invitee_email: str,
        inviter_user_id: UUID,
        ttl_days: int | None = None,
    ) -> InvitationResult:
        """Create an invitation and sign its token.

        Args:
            resource_type: TEAM or PROJECT.
            resource_id: The team or project to invite to.
            invitee_email: Address the invitation is bound to.
            inviter_user_id: The user creating the invitation (needs manage).
            ttl_days: Validity window, defaults to ``invitation_ttl_days``.

        Returns:
            InvitationResult with the stored row, the raw token (only
            available here) and an InviteCreated event for delivery.

        Raises:
            TeamNotFoundError / ProjectNotFoundError: resource does not exist.
            ForbiddenError: inviter may not manage the resource.
            PersonalTeamError: personal teams take no invitations.
            AlreadyAMemberError: invitee already holds a membership.
            DuplicateInvitationError: a pending invitation already exists.
        """
        ttl = ttl_days if ttl_days is not None else settings.invitation_ttl_days
        if not 1 <= ttl <= settings.invitation_max_ttl_days:
            raise BadRequestError(
                f"ttl_days must be between 1 and {settings.invitation_max_ttl_days}",
                details={"ttl_days": ttl},
            )
        email = normalize_email(invitee_email)

        async with self._uow_factory() as uow:
            team, project = await self._load_resource(uow, resource_type, resource_id)
            await self._require(uow, resource_type, resource_id, inviter_user_id, Action.MANAGE)

            if resource_type == ResourceType.TEAM and team.is_personal:
                raise PersonalTeamError("Personal teams cannot have invitations")

            invitee = await uow.users.get_by_email(email)
            if invitee and await self._get_membership(uow, resource_type, resource_id, invitee.id):
                raise AlreadyAMemberError(email)

            pending = await uow.invitations.get_pending_for_resource_email(
                resource_type, resource_id, email
            )
            if pending:
                raise DuplicateInvitationError(email)

            invitation = Invitation(
                resource_type=resource_type,
                resource_id=resource_id,
                email=email,
                invited_by=inviter_user_id,
                expires_at=datetime.utcnow().replace(microsecond=0) + timedelta(days=ttl),
            )
            token = self._signer.sign(invitation)
            invitation.token_hash = self._signer.hash_token(token)

            created = await uow.invitations.create(invitation)
            inviter = await uow.users.get(inviter_user_id)
            await uow.commit()

        event = InviteCreated(
            inviter_email=inviter.email if inviter else "",
            inviter_name=(inviter.full_name or inviter.email) if inviter else "",
            invitee_email=email,
            invitee_name=invitee.full_name if invitee else None,
            resource_type=resource_type.value,
            resource_name=project.name if project else team.name,
            token=token,
            ttl_days=ttl,
        )
        logger.info(
            "invitation_created",
            invitation_id=str(created.id),
            resource_type=resource_type.value,
            resource_id=str(resource_id),
            inviter_id=str(inviter_user_id),
            ttl_days=ttl,
        )
        return InvitationResult(invitation=created, token=token, events=[event])

    def verify_token(self, token: str) -> InvitationClaims:
        """Verify a token without touching the database.

        Raises:
            InvitationTokenError: malformed, bad signature, or expired.
        """
        return self._signer.verify(token)

    async def preview_invitation(self, token: str) -> InvitationPreview:
        """Describe an invitation for its landing page. No authentication needed."""
        claims = self._signer.verify(token)

        async with self._uow_factory() as uow:
            invitation = await uow.invitations.get_by_token_hash(self._signer.hash_token(token))
            if not invitation:
                raise InvitationNotFoundError(str(claims.invitation_id))

            team, project = await self._load_resource(
                uow, invitation.resource_type, invitation.resource_id
            )
            inviter = await uow.users.get(invitation.invited_by)
            account = await uow.users.get_by_email(invitation.email)

        status = invitation.status
        if status == InvitationStatus.PENDING and invitation.is_expired:
            status = InvitationStatus.EXPIRED

        return InvitationPreview(
            claims=claims,
            resource_name=project.name if project else team.name,
            team_name=team.name,
            status=status,
            inviter_name=(inviter.full_name or inviter.email) if inviter else "",
            has_account=account is not None,
        )

    async def accept_invitation(
        self, token: str, accepting_user_id: UUID | None
    ) -> AcceptedInvitation:
        """Accept an invitation on behalf of the signed-in user.

        Args:
            token: The raw invitation token.
            accepting_user_id: The signed-in user, or None when anonymous.

        Returns:
            AcceptedInvitation with the MEMBER membership. Accepting again
            with the same account returns the same membership.

        Raises:
            InvitationTokenError: token fails verification.
            InvitationNotFoundError: no invitation matches the token.
            InvitationRevokedError / InvitationExpiredError: no longer usable.
            InvitationEmailMismatchError: anonymous caller or another e-mail;
                ``details["email"]`` carries the invited address.
            InvitationAlreadyAcceptedError: consumed by another account.
        """
        self._signer.verify(token)
        token_hash = self._signer.hash_token(token)

        try:
            async with self._uow_factory() as uow:
                invitation = await uow.invitations.get_by_token_hash(token_hash)
                if not invitation:
                    raise InvitationNotFoundError()

                self._check_usable(invitation)

                user = await uow.users.get(accepting_user_id) if accepting_user_id else None
                if user is None or user.email != invitation.email:
                    raise InvitationEmailMismatchError(invitation.email)

                team, project = await self._load_resource(
                    uow, invitation.resource_type, invitation.resource_id
                )
                membership = await self._get_membership(
                    uow, invitation.resource_type, invitation.resource_id, user.id
                )

                if invitation.status == InvitationStatus.ACCEPTED:
                    if invitation.consumed_by == user.id and membership:
                        return AcceptedInvitation(
                            invitation=invitation,
                            membership=membership,
                            team=team,
                            project=project,
                            created=False,
                        )
                    raise InvitationAlreadyAcceptedError()

                created = membership is None
                if membership is None:
                    membership = await self._add_membership(uow, invitation, team, project, user.id)

                invitation.accept(user.id)
                await uow.invitations.update(invitation)
                await uow.commit()
        except IntegrityError as exc:
            # Concurrent accept by the same user: the other transaction won.
            if not is_unique_violation(exc) or accepting_user_id is None:
                raise
            logger.info("invitation_accept_race", user_id=str(accepting_user_id))
            return await self._reread_acceptance(token_hash, accepting_user_id)

        logger.info(
            "invitation_accepted",
            invitation_id=str(invitation.id),
            resource_type=invitation.resource_type.value,
            resource_id=str(invitation.resource_id),
            user_id=str(user.id),
            already_member=not created,
        )
        return AcceptedInvitation(
            invitation=invitation,
            membership=membership,
            team=team,
            project=project,
            created=created,
        )

    async def revoke_invitation(self, invitation_id: UUID, acting_user_id: UUID) -> Invitation:
        """Revoke an invitation. Requires manage on its resource.

        Revoking twice is a no-op; revoking an accepted invitation is a conflict.
        """
        async with self._uow_factory() as uow:
            invitation = await uow.invitations.get_by_id(invitation_id)
            if not invitation:
                raise InvitationNotFoundError(str(invitation_id))

            await self._require(
                uow,
                invitation.resource_type,
                invitation.resource_id,
                acting_user_id,
                Action.MANAGE,
            )

            if invitation.status == InvitationStatus.REVOKED:
                return invitation
            if invitation.status == InvitationStatus.ACCEPTED:
                raise InvitationAlreadyAcceptedError()

            invitation.revoke()
            updated = await uow.invitations.update(invitation)
            await uow.commit()

        logger.info(
            "invitation_revoked",
            invitation_id=str(invitation_id),
            acting_user_id=str(acting_user_id),
        )
        return updated  # type: ignore[no-any-return]

    async def list_invitations(
        self,
        resource_type: ResourceType,
        resource_id: UUID,
        user_id: UUID,
        query: str | None = None,
    ) -> list[Invitation]:
        """List pending invitations of a team or project. Requires membership."""
        async with self._uow_factory() as uow:
            await self._load_resource(uow, resource_type, resource_id)
            await self._require(uow, resource_type, resource_id, user_id, Action.READ)
            invitations = await uow.invitations.get_pending_for_resource(
                resource_type, resource_id
            )

        if query and query.strip():
            needle = query.strip().lower()
            invitations = [inv for inv in invitations if needle in inv.email]
        return invitations  # type: ignore[no-any-return]

    async def get_pending_for_email(self, email: str) -> list[Invitation]:
        """Get all pending invitations for an email address.

        Used to show pending invitations on the dashboard.
        """
        async with self._uow_factory() as uow:
            return await uow.invitations.get_pending_for_email(  # type: ignore[no-any-return]
                normalize_email(email)
            )

    async def expire_stale(self) -> int:
        """Mark pending invitations past their expiry as EXPIRED."""
        async with self._uow_factory() as uow:
            count = await uow.invitations.expire_old_invitations()
            await uow.commit()

        if count:
            logger.info("invitations_expired", count=count)
        return count  # type: ignore[no-any-return]

    # --- Internal helpers ---

    @staticmethod
    def _check_usable(invitation: Invitation) -> None:
        if invitation.status == InvitationStatus.REVOKED:
            raise InvitationRevokedError()
        if invitation.status == InvitationStatus.EXPIRED or (
            invitation.status == InvitationStatus.PENDING and invitation.is_expired
        ):
            raise InvitationExpiredError()

    @staticmethod
    async def _load_resource(
        uow: IUnitOfWork, resource_type: ResourceType, resource_id: UUID
    ) -> tuple[Team, Project | None]:
        """Return the owning team and, for project invitations, the project."""
        project = None
        if resource_type == ResourceType.PROJECT:
            project = await uow.projects.get(resource_id)
            if not project:
                raise ProjectNotFoundError(str(resource_id))
            team_id = project.team_id
        else:
            team_id = resource_id

        team = await uow.teams.get(team_id)
        if not team:
            raise TeamNotFoundError(str(team_id))
        return team, project

    @staticmethod
    async def _require(
        uow: IUnitOfWork,
        resource_type: ResourceType,
        resource_id: UUID,
        user_id: UUID,
        action: Action,
    ) -> None:
        if resource_type == ResourceType.PROJECT:
            await require_project_permission(uow, resource_id, user_id, action)
        else:
            await require_team_permission(uow, resource_id, user_id, action)

    @staticmethod
    async def _get_membership(
        uow: IUnitOfWork, resource_type: ResourceType, resource_id: UUID, user_id: UUID
    ) -> TeamMember | ProjectMember | None:
        if resource_type == ResourceType.PROJECT:
            return await uow.projects.get_member(resource_id, user_id)  # type: ignore[no-any-return]
        return await uow.teams.get_member(resource_id, user_id)  # type: ignore[no-any-return]

    @staticmethod
    async def _add_membership(
        uow: IUnitOfWork,
        invitation: Invitation,
        team: Team,
        project: Project | None,
        user_id: UUID,
    ) -> TeamMember | ProjectMember:
        # A project invitation grants the project only, never the team.
        if project is not None:
            return await uow.projects.add_member(  # type: ignore[no-any-return]
                ProjectMember(
                    project_id=project.id,
                    team_id=team.id,
                    user_id=user_id,
                    role=Role.MEMBER,
                    invited_by=invitation.invited_by,
                )
            )
        return await uow.teams.add_member(  # type: ignore[no-any-return]
            TeamMember(
                team_id=team.id,
                user_id=user_id,
                role=Role.MEMBER,
                invited_by=invitation.invited_by,
            )
        )

    async def _reread_acceptance(self, token_hash: str, user_id: UUID) -> AcceptedInvitation:
        async with self._uow_factory() as uow:
            invitation = await uow.invitations.get_by_token_hash(token_hash)
            if not invitation:
                raise InvitationNotFoundError()

            team, project = await self._load_resource(
                uow, invitation.resource_type, invitation.resource_id
            )
            membership = await self._get_membership(
                uow, invitation.resource_type, invitation.resource_id, user_id
            )
            if membership is None:
                raise InvitationAlreadyAcceptedError()

            if invitation.status == InvitationStatus.PENDING:
                invitation.accept(user_id)
                await uow.invitations.update(invitation)
                await uow.commit()

        return AcceptedInvitation(
            invitation=invitation,
            membership=membership,
            team=team,
            project=project,
            created=False,
        )
