import logging

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.viewsets import ReadOnlyModelViewSet
from rest_framework_simplejwt.tokens import RefreshToken
from rest_framework_simplejwt.views import TokenObtainPairView
from django.contrib.auth import update_session_auth_hash
from django.utils import timezone

from production.sections import section_permissions
from .models import CustomUser
from .permissions import IsAdminOrReadOnly
from .serializers import UserLoginSerializer, UserDetailSerializer, ChangePasswordSerializer

logger = logging.getLogger(__name__)


class CustomTokenObtainPairView(TokenObtainPairView):
    """
    JWT login returning the user together with the token pair
    """
    serializer_class = UserLoginSerializer

    def post(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        user = serializer.validated_data['user']
        user.last_login = timezone.now()
        user.save(update_fields=['last_login'])

        refresh = RefreshToken.for_user(user)
        logger.info(f"User {user.email} logged in with role {user.role}")

        return Response({
            'refresh': str(refresh),
            'access': str(refresh.access_token),
            'user': UserDetailSerializer(user).data,
            'message': 'Login successful'
        }, status=status.HTTP_200_OK)


class UserViewSet(ReadOnlyModelViewSet):
    """
    User directory, used by the UI to resolve responsibles and signers
    """
    permission_classes = [IsAdminOrReadOnly]
    serializer_class = UserDetailSerializer
    queryset = CustomUser.objects.all().order_by('first_name', 'last_name')
    search_fields = ['email', 'first_name', 'last_name']
    filterset_fields = ['role', 'is_active']


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def user_profile(request):
    """
    Current user plus the production sections it may edit
    """
    data = UserDetailSerializer(request.user).data
    data['section_permissions'] = section_permissions(request.user)
    return Response(data)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def change_password(request):
    serializer = ChangePasswordSerializer(data=request.data, context={'request': request})
    serializer.is_valid(raise_exception=True)

    user = request.user
    user.set_password(serializer.validated_data['new_password'])
    user.save(update_fields=['password'])
    update_session_auth_hash(request, user)
    logger.info(f"Password changed for {user.email}")
    return Response({'message': 'Password changed successfully'})


@api_view(['GET'])
@permission_classes([AllowAny])
def health_check(request):
    return Response({
        'status': 'healthy',
        'message': 'Authentication service is running',
        'timestamp': timezone.now(),
        'version': '1.0.0'
    })
