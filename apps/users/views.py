"""Back-office user management API."""

from __future__ import annotations

from django.contrib.auth import get_user_model  # type: ignore
from django.db.models import Q  # type: ignore
from rest_framework import status, viewsets  # type: ignore
from rest_framework.decorators import action  # type: ignore
from rest_framework.response import Response  # type: ignore

from .permissions import CanManageUsers
from .serializers import (
    AdminUserCreateSerializer,
    DisplayNameSerializer,
    PasswordResetSerializer,
    SectionSerializer,
    UserRoleSerializer,
    UserSerializer,
)
from .services import (
    UserManagementError,
    create_admin_user,
    delete_user,
    reset_user_password,
    set_user_active,
    update_display_name,
    update_user_role,
)

User = get_user_model()


class UserViewSet(viewsets.ModelViewSet):
    """Back-office user management.

    - list and detail: admins and operators holding `users_readonly`
    - create, role, password, (de)activation and delete: super_admin/admin only
    """

    serializer_class = UserSerializer
    queryset = User.objects.prefetch_related("operator_permissions").all()
    permission_classes = [CanManageUsers]
    http_method_names = ["get", "post", "delete", "head", "options"]

    def get_queryset(self):  # type: ignore
        qs = super().get_queryset()
        role = self.request.query_params.get("role")
        if role:
            qs = qs.filter(role=role)
        search = self.request.query_params.get("search")
        if search:
            qs = qs.filter(Q(email__icontains=search) | Q(username__icontains=search))
        return qs

    def create(self, request, *args, **kwargs):  # type: ignore
        serializer = AdminUserCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        try:
            user = create_admin_user(
                email=data["email"],
                password=data["password"],
                display_name=data["display_name"],
                role=data["role"],
                sections=data.get("permissions"),
            )
        except UserManagementError as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)
        return Response(UserSerializer(user).data, status=status.HTTP_201_CREATED)

    def destroy(self, request, *args, **kwargs):  # type: ignore
        user = self.get_object()
        if user.pk == request.user.pk:
            return Response(
                {"detail": "Non puoi eliminare il tuo stesso account."},
                status=status.HTTP_400_BAD_REQUEST,
            )
        delete_user(user)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=True, methods=["post"])
    def role(self, request, pk=None):  # type: ignore
        user = self.get_object()
        serializer = UserRoleSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            update_user_role(user, serializer.validated_data["role"], serializer.validated_data.get("permissions"))
        except UserManagementError as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)
        return Response(UserSerializer(user).data)

    @action(detail=True, methods=["post"], url_path="display-name")
    def display_name(self, request, pk=None):  # type: ignore
        user = self.get_object()
        serializer = DisplayNameSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        update_display_name(user, serializer.validated_data["display_name"])
        return Response(UserSerializer(user).data)

    @action(detail=True, methods=["post"], url_path="reset-password")
    def reset_password(self, request, pk=None):  # type: ignore
        user = self.get_object()
        serializer = PasswordResetSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            reset_user_password(user, serializer.validated_data["new_password"])
        except UserManagementError as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)
        return Response({"detail": "Password reimpostata."})

    @action(detail=True, methods=["post"])
    def deactivate(self, request, pk=None):  # type: ignore
        user = self.get_object()
        if user.pk == request.user.pk:
            return Response(
                {"detail": "Non puoi disattivare il tuo stesso account."},
                status=status.HTTP_400_BAD_REQUEST,
            )
        set_user_active(user, False)
        return Response({"is_active": user.is_active})

    @action(detail=True, methods=["post"])
    def reactivate(self, request, pk=None):  # type: ignore
        user = self.get_object()
        set_user_active(user, True)
        return Response({"is_active": user.is_active})

    @action(detail=False, methods=["get"])
    def sections(self, request):  # type: ignore
        return Response(SectionSerializer.all_sections())
