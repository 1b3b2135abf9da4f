from unittest.mock import Mock

import pytest
from fastapi import status
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from app.core.dependencies import get_metadata_gateway
from app.core.errors import ErrorKind, UpstreamError
from app.models.credentials import Credential
from app.models.quests import Quest, QuestProgress
from app.services.metadata_storage import MetadataStorageGateway
from main import app
from tests.helpers import Wallet, auth_headers, login_token


class TestQuestListAPI:
    """Test cases for quest listing and detail"""

    def test_list_quests(self, client: TestClient, quest: Quest, second_quest: Quest):
        response = client.get("/quests")

        assert response.status_code == status.HTTP_200_OK
        body = response.json()
        assert body["success"] is True
        assert [q["id"] for q in body["data"]] == [quest.id, second_quest.id]
        assert body["data"][0]["estimatedTime"] == "30 minutes"

    def test_quest_detail_anonymous(self, client: TestClient, quest: Quest):
        response = client.get(f"/quests/{quest.id}")

        assert response.status_code == status.HTTP_200_OK
        data = response.json()["data"]
        assert data["title"] == "Solana Basics"
        assert data["isCompleted"] is False
        assert data["completedAt"] is None

    def test_quest_detail_not_found(self, client: TestClient):
        response = client.get("/quests/999")

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.json() == {"success": False, "error": "Quest not found", "code": "QUEST_NOT_FOUND"}

    @pytest.mark.parametrize("quest_id", [0, -1])
    def test_quest_detail_non_positive_id(self, client: TestClient, quest_id: int):
        response = client.get(f"/quests/{quest_id}")

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.json()["code"] == "QUEST_NOT_FOUND"

    def test_quest_detail_with_completion(self, client: TestClient, wallet: Wallet, quest: Quest):
        headers = auth_headers(login_token(client, wallet))
        client.post(f"/quests/{quest.id}/complete", headers=headers)

        data = client.get(f"/quests/{quest.id}", headers=headers).json()["data"]
        assert data["isCompleted"] is True
        assert data["completedAt"] is not None

    def test_progress_requires_auth(self, client: TestClient):
        response = client.get("/quests/progress")

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.json()["code"] == "TOKEN_MISSING"

    def test_progress_lists_completed_quests(
        self, client: TestClient, wallet: Wallet, quest: Quest, second_quest: Quest
    ):
        headers = auth_headers(login_token(client, wallet))
        client.post(f"/quests/{second_quest.id}/complete", headers=headers)

        response = client.get("/quests/progress", headers=headers)
        assert response.status_code == status.HTTP_200_OK
        data = response.json()["data"]
        assert len(data) == 1
        assert data[0]["questId"] == second_quest.id
        assert data[0]["completed"] is True
        assert data[0]["quest"]["title"] == "Rust Ownership"


class TestCompleteQuestAPI:
    """Test cases for POST /quests/{id}/complete"""

    def test_complete_issues_credential(self, client: TestClient, wallet: Wallet, quest: Quest):
        headers = auth_headers(login_token(client, wallet))
        response = client.post(
            f"/quests/{quest.id}/complete", headers=headers, json={"walletAddress": wallet.address}
        )

        assert response.status_code == status.HTTP_200_OK
        body = response.json()
        assert body["success"] is True
        assert body["message"] == "Quest completed successfully!"
        assert "warning" not in body
        assert body["data"]["questProgress"]["completed"] is True
        assert body["data"]["questProgress"]["questId"] == quest.id
        credential = body["data"]["credential"]
        assert credential["questId"] == quest.id
        assert credential["metadataUri"].startswith("https://ipfs.test/ipfs/Qm")
        assert credential["tokenMint"]

    def test_complete_without_body(self, client: TestClient, wallet: Wallet, quest: Quest):
        headers = auth_headers(login_token(client, wallet))
        response = client.post(f"/quests/{quest.id}/complete", headers=headers)

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["data"]["credential"]["tokenMint"]

    def test_second_completion_conflicts(self, client: TestClient, wallet: Wallet, quest: Quest):
        headers = auth_headers(login_token(client, wallet))
        assert client.post(f"/quests/{quest.id}/complete", headers=headers).status_code == 200

        response = client.post(f"/quests/{quest.id}/complete", headers=headers)
        assert response.status_code == status.HTTP_409_CONFLICT
        assert response.json() == {
            "success": False,
            "error": "Quest already completed",
            "code": "ALREADY_COMPLETED",
        }

    def test_complete_requires_auth(self, client: TestClient, quest: Quest):
        response = client.post(f"/quests/{quest.id}/complete")
        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_complete_unknown_quest(self, client: TestClient, wallet: Wallet):
        headers = auth_headers(login_token(client, wallet))
        response = client.post("/quests/999/complete", headers=headers)

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.json()["code"] == "QUEST_NOT_FOUND"

    def test_complete_quest_zero(self, client: TestClient, wallet: Wallet):
        headers = auth_headers(login_token(client, wallet))
        response = client.post("/quests/0/complete", headers=headers)

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.json()["code"] == "QUEST_NOT_FOUND"

    def test_complete_with_other_wallet(
        self, client: TestClient, wallet: Wallet, other_wallet: Wallet, quest: Quest
    ):
        headers = auth_headers(login_token(client, wallet))
        response = client.post(
            f"/quests/{quest.id}/complete", headers=headers, json={"walletAddress": other_wallet.address}
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["code"] == "WALLET_MISMATCH"

    def test_metadata_outage_is_a_degraded_success(
        self, client: TestClient, db_session: Session, wallet: Wallet, quest: Quest
    ):
        gateway = Mock(spec=MetadataStorageGateway)
        gateway.upload_metadata.side_effect = UpstreamError(
            "All metadata providers failed", ErrorKind.METADATA_UPLOAD_FAILED
        )
        app.dependency_overrides[get_metadata_gateway] = lambda: gateway
        headers = auth_headers(login_token(client, wallet))

        response = client.post(f"/quests/{quest.id}/complete", headers=headers)

        assert response.status_code == status.HTTP_200_OK
        body = response.json()
        assert body["success"] is True
        assert body["message"] == "Quest completed! Credential minting in progress..."
        assert body["warning"] == "Credential will be available shortly"
        assert "credential" not in body["data"]
        assert body["data"]["questProgress"]["completed"] is True

        db_session.expire_all()
        assert db_session.query(QuestProgress).filter(QuestProgress.completed.is_(True)).count() == 1
        assert db_session.query(Credential).count() == 0
