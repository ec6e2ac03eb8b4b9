"""
Signed-in account state.

``AccountContext`` is the app-wide view of the current user. It is built
from the profile when the user signs in, kept in the session, attached to
every request as ``request.account`` and dropped when the user signs out.
"""

SESSION_KEY = "marketplace_account"


class AccountContext:
    def __init__(self, uid=None, name="", email="", avatar_url=None):
        self.uid = uid
        self.name = name
        self.email = email
        self.avatar_url = avatar_url

    def __eq__(self, other):
        if not isinstance(other, AccountContext):
            return NotImplemented
        return self.as_dict() == other.as_dict()

    def __repr__(self):
        return f"AccountContext(uid={self.uid!r}, email={self.email!r})"

    @property
    def is_authenticated(self):
        return self.uid is not None

    def as_dict(self):
        return {
            "uid": self.uid,
            "name": self.name,
            "email": self.email,
            "avatar_url": self.avatar_url,
        }

    @classmethod
    def anonymous(cls):
        return cls()

    @classmethod
    def for_user(cls, user):
        profile = user.profile
        return cls(
            uid=user.pk,
            name=profile.display_name,
            email=user.email,
            avatar_url=profile.avatar_url,
        )


def _profile_version(user):
    return user.profile.updated_at.isoformat()


def start_session(request, user):
    """Build the account context for ``user`` and cache it in the session."""
    account = AccountContext.for_user(user)
    request.session[SESSION_KEY] = {**account.as_dict(), "version": _profile_version(user)}
    request.account = account
    return account


def refresh_session(request):
    """Rebuild the cached context after the profile changed."""
    return start_session(request, request.user)


def end_session(request):
    if hasattr(request, "session"):
        request.session.pop(SESSION_KEY, None)
    request.account = AccountContext.anonymous()


def account_from_request(request):
    """
    The cached context of the signed-in user.

    The snapshot is rebuilt when the profile changed since it was cached,
    e.g. by an edit made in another session.
    """
    user = getattr(request, "user", None)
    if user is None or not user.is_authenticated:
        return AccountContext.anonymous()
    cached = dict(request.session.get(SESSION_KEY) or {})
    version = cached.pop("version", None)
    if cached.get("uid") == user.pk and version == _profile_version(user):
        return AccountContext(**cached)
    return start_session(request, user)
