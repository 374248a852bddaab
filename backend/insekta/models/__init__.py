from insekta.models.user import User
from insekta.models.feature import Feature, FeatureAssignment
from insekta.models.banner import Banner
from insekta.models.chart import Chart
from insekta.models.team import TeamMember
