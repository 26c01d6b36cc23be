from gymdash.screens.admin_settings import AdminSettingsScreen
from gymdash.screens.analytics import AnalyticsReportingScreen
from gymdash.screens.announcements import AnnouncementsScreen, PublicAnnouncementsScreen
from gymdash.screens.base import DashboardScreen
from gymdash.screens.content_management import ContentManagementScreen
from gymdash.screens.goals import GoalsScreen
from gymdash.screens.notifications import NotificationsScreen
from gymdash.screens.performance_analytics import PerformanceAnalyticsScreen
from gymdash.screens.spa_management import SpaManagementScreen
from gymdash.screens.subscription_management import SubscriptionManagementScreen
from gymdash.screens.trainer_management import TrainerManagementScreen
from gymdash.screens.user_management import UserManagementScreen

__all__ = [
    "AdminSettingsScreen",
    "AnalyticsReportingScreen",
    "AnnouncementsScreen",
    "ContentManagementScreen",
    "DashboardScreen",
    "GoalsScreen",
    "NotificationsScreen",
    "PerformanceAnalyticsScreen",
    "PublicAnnouncementsScreen",
    "SpaManagementScreen",
    "SubscriptionManagementScreen",
    "TrainerManagementScreen",
    "UserManagementScreen",
]
