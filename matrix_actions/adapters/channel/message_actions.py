"""Channel message-action adapter for Matrix.

Maps platform-agnostic action names (``send``, ``react``, ``list-pins`` ...)
onto router verbs, renaming the few params whose names differ.
"""

import json
from typing import Any, Dict, List, Mapping, Optional

from matrix_actions.domain.accounts import find_account_key, resolve_matrix_account
from matrix_actions.domain.errors import UnsupportedActionError
from matrix_actions.domain.router import ActionRouter
from matrix_actions.ports.inbound import ActionRequest, ChannelActionContext

# action → {adapter param: router param}
PARAM_RENAMES: Dict[str, Dict[str, str]] = {
    "send": {"message": "content", "media": "mediaUrl", "replyTo": "replyToId"},
    "edit": {"message": "content"},
}

UNSUPPORTED_ACTIONS = frozenset({"poll"})


class MatrixMessageActions:
    def __init__(self, router: ActionRouter):
        self._router = router

    def list_actions(self, cfg: Mapping[str, Any]) -> List[str]:
        """Actions to advertise; none while the default account is unusable."""
        account = resolve_matrix_account(cfg)
        if not account.enabled or not account.configured:
            return []
        return self._router.list_actions(cfg)

    @staticmethod
    def supports_action(action: str) -> bool:
        return action not in UNSUPPORTED_ACTIONS

    @staticmethod
    def extract_tool_send(args: Mapping[str, Any]) -> Optional[Dict[str, Optional[str]]]:
        """Pull the send target out of raw ``sendMessage`` tool args."""
        action = args.get("action")
        if not isinstance(action, str) or action.strip() != "sendMessage":
            return None
        to = args.get("to")
        if not isinstance(to, str) or not to:
            return None
        account_id = args.get("accountId")
        return {
            "to": to,
            "accountId": account_id.strip() if isinstance(account_id, str) else None,
        }

    @staticmethod
    def effective_account_id(ctx: ChannelActionContext) -> Optional[str]:
        """Explicit account id, else the gateway client name matched to an account."""
        if ctx.account_id and ctx.account_id.strip():
            return ctx.account_id.strip()
        if ctx.gateway_client_name:
            return find_account_key(ctx.cfg, ctx.gateway_client_name.lower())
        return None

    @staticmethod
    def action_name(ctx: ChannelActionContext) -> str:
        return (ctx.action or "").strip()

    def to_router_params(self, ctx: ChannelActionContext) -> Dict[str, Any]:
        action = self.action_name(ctx)
        params: Dict[str, Any] = dict(ctx.params or {})
        for source, target in PARAM_RENAMES.get(action, {}).items():
            if source in params and params.get(target) is None:
                params[target] = params.pop(source)
        if action == "send" and ctx.media_local_roots:
            params["mediaLocalRoots"] = json.dumps(list(ctx.media_local_roots))
        account_id = self.effective_account_id(ctx)
        if account_id:
            params["accountId"] = account_id
        return params

    def to_request(self, ctx: ChannelActionContext) -> ActionRequest:
        action = self.action_name(ctx)
        verb = self._router.verb_for_action(action) if self.supports_action(action) else None
        if verb is None:
            raise UnsupportedActionError(action)
        return ActionRequest(verb=verb, params=self.to_router_params(ctx))

    async def handle_action(self, ctx: ChannelActionContext) -> Dict[str, Any]:
        request = self.to_request(ctx)
        return await self._router.dispatch(request.verb, request.params, ctx.cfg)
