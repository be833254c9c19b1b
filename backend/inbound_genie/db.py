from typing import Any, Dict, List, Optional
from uuid import uuid4
from datetime import datetime, timezone
import logging
import threading

# Lightweight adapter over the Supabase client. When SUPABASE_URL is missing an in-memory store is used instead.
from supabase import create_client, Client

from .config import supabase_credentials


logger = logging.getLogger(__name__)

TOUR_REWARD_TYPE = "tour_completion"


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _credits(value: Any) -> float:
    try:
        return float(value or 0)
    except (TypeError, ValueError):
        return 0.0


class InMemoryDB:
    def __init__(self) -> None:
        self.profiles: Dict[str, Dict[str, Any]] = {}
        self.calls: Dict[str, Dict[str, Any]] = {}
        self.credit_usage_logs: List[Dict[str, Any]] = []
        self.tour_rewards: Dict[tuple, Dict[str, Any]] = {}
        self.leads: Dict[str, Dict[str, Any]] = {}
        self.otps: List[Dict[str, Any]] = []
        self.activity_logs: List[Dict[str, Any]] = []
        self.notifications: List[Dict[str, Any]] = []
        self.call_analytics: Dict[str, Dict[str, Any]] = {}
        self.bots: Dict[str, Dict[str, Any]] = {}
        # Stands in for the row locks taken by the credit RPCs
        self._lock = threading.RLock()

    # Profiles
    def get_profile(self, user_id: str) -> Optional[Dict[str, Any]]:
        profile = self.profiles.get(str(user_id))
        return dict(profile) if profile else None

    def get_profile_by_email(self, email: str) -> Optional[Dict[str, Any]]:
        email = (email or "").lower()
        for profile in self.profiles.values():
            if (profile.get("email") or "").lower() == email:
                return dict(profile)
        return None

    def upsert_profile(self, row: Dict[str, Any]) -> Dict[str, Any]:
        with self._lock:
            uid = str(row["user_id"])
            current = self.profiles.get(uid, {
                "id": str(uuid4()),
                "Remaning_credits": 0,
                "Total_credit": 0,
                "total_minutes_used": 0,
                "tour_completed": False,
                "is_deactivated": False,
                "created_at": _now(),
            })
            current.update(row)
            current["updated_at"] = _now()
            self.profiles[uid] = current
            return dict(current)

    def update_profile(self, user_id: str, updates: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        with self._lock:
            profile = self.profiles.get(str(user_id))
            if profile is None:
                return None
            profile.update(updates)
            profile["updated_at"] = _now()
            return dict(profile)

    # Credits
    def deduct_credits(self, user_id: str, amount: float, usage_type: str, description: str,
                       metadata: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        with self._lock:
            profile = self.profiles.get(str(user_id))
            if profile is None:
                return {"success": False, "error": "Profile not found"}
            balance = _credits(profile.get("Remaning_credits"))
            if amount > balance:
                return {"success": False, "error": "Insufficient credits", "remaining_credits": balance}
            remaining = balance - amount
            profile["Remaning_credits"] = remaining
            self._append_log(user_id, usage_type, amount, remaining, description, metadata)
            return {"success": True, "remaining_credits": remaining, "credits_used": amount}

    def add_credits(self, user_id: str, amount: float, description: str,
                    reference_id: Optional[str] = None) -> Dict[str, Any]:
        with self._lock:
            profile = self.profiles.get(str(user_id))
            if profile is None:
                return {"success": False, "error": "Profile not found"}
            remaining = _credits(profile.get("Remaning_credits")) + amount
            profile["Remaning_credits"] = remaining
            profile["Total_credit"] = _credits(profile.get("Total_credit")) + amount
            self._append_log(user_id, "other", -amount, remaining, description,
                             {"reference_id": reference_id} if reference_id else None)
            return {"success": True, "remaining_credits": remaining, "credits_added": amount}

    def grant_tour_reward(self, user_id: str, amount: float, description: str) -> Dict[str, Any]:
        key = (str(user_id), TOUR_REWARD_TYPE)
        with self._lock:
            if key in self.tour_rewards:
                return {"success": True, "granted": False}
            result = self.add_credits(user_id, amount, description, reference_id=f"{TOUR_REWARD_TYPE}_{user_id}")
            if not result.get("success"):
                return {"success": False, "granted": False, "error": result.get("error")}
            self.tour_rewards[key] = {"user_id": str(user_id), "reward_type": TOUR_REWARD_TYPE,
                                      "credits": amount, "created_at": _now()}
            return {"success": True, "granted": True, "remaining_credits": result["remaining_credits"]}

    def list_usage_logs(self, user_id: str, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        logs = [dict(log) for log in reversed(self.credit_usage_logs) if log["user_id"] == str(user_id)]
        return logs[:limit] if limit else logs

    def _append_log(self, user_id, usage_type, credits_used, balance_after, description, metadata) -> None:
        self.credit_usage_logs.append({
            "id": str(uuid4()),
            "user_id": str(user_id),
            "usage_type": usage_type,
            "credits_used": credits_used,
            "balance_after": balance_after,
            "cost_breakdown": {"description": description, **(metadata or {})},
            "created_at": _now(),
        })

    # Calls
    def get_call(self, call_id: str) -> Optional[Dict[str, Any]]:
        call = self.calls.get(str(call_id))
        return dict(call) if call else None

    def create_call(self, row: Dict[str, Any]) -> Dict[str, Any]:
        cid = str(row.get("id") or uuid4())
        obj = {"id": cid, "status": "pending", "analyzed": False, "is_test_call": False, "created_at": _now()}
        obj.update(row)
        obj["id"] = cid
        self.calls[cid] = obj
        return dict(obj)

    def upsert_call(self, row: Dict[str, Any]) -> Dict[str, Any]:
        cid = str(row["id"])
        if cid in self.calls:
            return self.update_call(cid, row)
        return self.create_call(row)

    def update_call(self, call_id: str, updates: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        call = self.calls.get(str(call_id))
        if call is None:
            return None
        call.update(updates)
        call["updated_at"] = _now()
        return dict(call)

    def upsert_call_analytics(self, row: Dict[str, Any]) -> None:
        self.call_analytics[str(row["call_id"])] = dict(row)

    def get_bot_name(self, bot_id: Optional[str]) -> Optional[str]:
        bot = self.bots.get(str(bot_id)) if bot_id else None
        return bot.get("name") if bot else None

    # Leads
    def find_lead(self, user_id: str, phone: Optional[str] = None, email: Optional[str] = None) -> Optional[Dict[str, Any]]:
        for field, value in (("phone_number", phone), ("email", email)):
            if not value:
                continue
            for lead in self.leads.values():
                if lead.get("user_id") == str(user_id) and lead.get(field) == value:
                    return dict(lead)
        return None

    def insert_lead(self, row: Dict[str, Any]) -> Dict[str, Any]:
        lid = str(uuid4())
        obj = {"id": lid, "created_at": _now(), **row}
        self.leads[lid] = obj
        return dict(obj)

    def update_lead(self, lead_id: str, updates: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        lead = self.leads.get(str(lead_id))
        if lead is None:
            return None
        lead.update(updates)
        lead["updated_at"] = _now()
        return dict(lead)

    # Email verification codes
    def create_otp(self, user_id: str, email: str, otp_code: str, expires_at: str) -> Dict[str, Any]:
        obj = {
            "id": str(uuid4()),
            "user_id": str(user_id),
            "email": email,
            "otp_code": otp_code,
            "created_at": _now(),
            "expires_at": expires_at,
            "verified_at": None,
            "used": False,
        }
        self.otps.append(obj)
        return dict(obj)

    def latest_otp(self, user_id: str) -> Optional[Dict[str, Any]]:
        rows = [o for o in self.otps if o["user_id"] == str(user_id)]
        if not rows:
            return None
        return dict(max(rows, key=lambda o: o["created_at"]))

    def find_otp(self, user_id: str, email: str, otp_code: str) -> Optional[Dict[str, Any]]:
        matches = [o for o in self.otps
                   if o["user_id"] == str(user_id) and o["email"] == email
                   and o["otp_code"] == otp_code and not o["used"]]
        if not matches:
            return None
        return dict(max(matches, key=lambda o: o["created_at"]))

    def consume_otp(self, otp_id: str) -> bool:
        """Flip `used` from false to true; False when another request got there first."""
        with self._lock:
            for otp in self.otps:
                if otp["id"] == otp_id and not otp["used"]:
                    otp["used"] = True
                    otp["verified_at"] = _now()
                    return True
            return False

    # Activity and notifications
    def log_activity(self, user_id: str, activity_type: str, description: str,
                     metadata: Optional[Dict[str, Any]] = None) -> None:
        self.activity_logs.append({
            "id": str(uuid4()),
            "user_id": str(user_id),
            "activity_type": activity_type,
            "description": description,
            "metadata": metadata or {},
            "created_at": _now(),
        })

    def create_notification(self, user_id: str, title: str, message: str, type: str = "info") -> None:
        self.notifications.append({
            "id": str(uuid4()),
            "user_id": str(user_id),
            "title": title,
            "message": message,
            "type": type,
            "read": False,
            "created_at": _now(),
        })


class SupabaseDB:
    def __init__(self, client: Client) -> None:
        self.client = client

    def _first(self, res) -> Optional[Dict[str, Any]]:
        rows = res.data or []
        return rows[0] if rows else None

    # Profiles
    def get_profile(self, user_id: str) -> Optional[Dict[str, Any]]:
        res = self.client.table("profiles").select("*").eq("user_id", str(user_id)).limit(1).execute()
        return self._first(res)

    def get_profile_by_email(self, email: str) -> Optional[Dict[str, Any]]:
        res = self.client.table("profiles").select("*").ilike("email", email).limit(1).execute()
        return self._first(res)

    def upsert_profile(self, row: Dict[str, Any]) -> Dict[str, Any]:
        res = self.client.table("profiles").upsert(row, on_conflict="user_id").execute()
        return self._first(res) or row

    def update_profile(self, user_id: str, updates: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        res = self.client.table("profiles").update(updates).eq("user_id", str(user_id)).execute()
        return self._first(res)

    # Credits, atomic on the database side
    def deduct_credits(self, user_id: str, amount: float, usage_type: str, description: str,
                       metadata: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        try:
            res = self.client.rpc("deduct_credits", {
                "p_user_id": str(user_id),
                "p_amount": amount,
                "p_usage_type": usage_type,
                "p_description": description,
                "p_metadata": metadata or {},
            }).execute()
        except Exception as e:
            return {"success": False, "error": getattr(e, "message", None) or str(e)}
        return res.data or {"success": False, "error": "Empty response from deduct_credits"}

    def add_credits(self, user_id: str, amount: float, description: str,
                    reference_id: Optional[str] = None) -> Dict[str, Any]:
        try:
            res = self.client.rpc("add_credits", {
                "p_user_id": str(user_id),
                "p_amount": amount,
                "p_description": description,
                "p_reference_id": reference_id,
            }).execute()
        except Exception as e:
            return {"success": False, "error": getattr(e, "message", None) or str(e)}
        return res.data or {"success": False, "error": "Empty response from add_credits"}

    def grant_tour_reward(self, user_id: str, amount: float, description: str) -> Dict[str, Any]:
        try:
            res = self.client.rpc("grant_tour_reward", {
                "p_user_id": str(user_id),
                "p_amount": amount,
                "p_description": description,
            }).execute()
        except Exception as e:
            return {"success": False, "granted": False, "error": getattr(e, "message", None) or str(e)}
        return res.data or {"success": False, "granted": False, "error": "Empty response from grant_tour_reward"}

    def list_usage_logs(self, user_id: str, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        query = self.client.table("credit_usage_logs").select("*").eq("user_id", str(user_id)).order("created_at", desc=True)
        if limit:
            query = query.limit(limit)
        return query.execute().data or []

    # Calls
    def get_call(self, call_id: str) -> Optional[Dict[str, Any]]:
        res = self.client.table("calls").select("*").eq("id", str(call_id)).limit(1).execute()
        return self._first(res)

    def create_call(self, row: Dict[str, Any]) -> Dict[str, Any]:
        res = self.client.table("calls").insert(row).execute()
        return self._first(res) or row

    def upsert_call(self, row: Dict[str, Any]) -> Dict[str, Any]:
        res = self.client.table("calls").upsert(row, on_conflict="id").execute()
        return self._first(res) or row

    def update_call(self, call_id: str, updates: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        res = self.client.table("calls").update(updates).eq("id", str(call_id)).execute()
        return self._first(res)

    def upsert_call_analytics(self, row: Dict[str, Any]) -> None:
        self.client.table("call_analytics").upsert(row, on_conflict="call_id").execute()

    def get_bot_name(self, bot_id: Optional[str]) -> Optional[str]:
        if not bot_id:
            return None
        bot = self._first(self.client.table("bots").select("name").eq("id", str(bot_id)).limit(1).execute())
        return bot.get("name") if bot else None

    # Leads
    def find_lead(self, user_id: str, phone: Optional[str] = None, email: Optional[str] = None) -> Optional[Dict[str, Any]]:
        for field, value in (("phone_number", phone), ("email", email)):
            if not value:
                continue
            res = self.client.table("page_leads").select("*").eq("user_id", str(user_id)).eq(field, value).limit(1).execute()
            lead = self._first(res)
            if lead:
                return lead
        return None

    def insert_lead(self, row: Dict[str, Any]) -> Dict[str, Any]:
        res = self.client.table("page_leads").insert(row).execute()
        return self._first(res) or row

    def update_lead(self, lead_id: str, updates: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        res = self.client.table("page_leads").update(updates).eq("id", str(lead_id)).execute()
        return self._first(res)

    # Email verification codes
    def create_otp(self, user_id: str, email: str, otp_code: str, expires_at: str) -> Dict[str, Any]:
        row = {"user_id": str(user_id), "email": email, "otp_code": otp_code, "expires_at": expires_at, "used": False}
        res = self.client.table("email_verification_otps").insert(row).execute()
        return self._first(res) or row

    def latest_otp(self, user_id: str) -> Optional[Dict[str, Any]]:
        res = (self.client.table("email_verification_otps").select("*").eq("user_id", str(user_id))
               .order("created_at", desc=True).limit(1).execute())
        return self._first(res)

    def find_otp(self, user_id: str, email: str, otp_code: str) -> Optional[Dict[str, Any]]:
        res = (self.client.table("email_verification_otps").select("*")
               .eq("user_id", str(user_id)).eq("email", email).eq("otp_code", otp_code).eq("used", False)
               .order("created_at", desc=True).limit(1).execute())
        return self._first(res)

    def consume_otp(self, otp_id: str) -> bool:
        res = (self.client.table("email_verification_otps")
               .update({"used": True, "verified_at": _now()})
               .eq("id", otp_id).eq("used", False).execute())
        return bool(res.data)

    # Activity and notifications
    def log_activity(self, user_id: str, activity_type: str, description: str,
                     metadata: Optional[Dict[str, Any]] = None) -> None:
        self.client.table("activity_logs").insert({
            "user_id": str(user_id),
            "activity_type": activity_type,
            "description": description,
            "metadata": metadata or {},
        }).execute()

    def create_notification(self, user_id: str, title: str, message: str, type: str = "info") -> None:
        self.client.table("notifications").insert({
            "user_id": str(user_id),
            "title": title,
            "message": message,
            "type": type,
            "read": False,
        }).execute()


_client: Optional[Client] = None
_db_instance: Optional[Any] = None


def get_db():
    global _client, _db_instance
    creds = supabase_credentials()
    if creds:
        if _client is None:
            _client = create_client(*creds)
        if _db_instance is None or not isinstance(_db_instance, SupabaseDB):
            _db_instance = SupabaseDB(_client)
        return _db_instance
    if _db_instance is None or not isinstance(_db_instance, InMemoryDB):
        _db_instance = InMemoryDB()
    return _db_instance
